from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx
from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from ..core.config import settings
from ..crud.transactions import insert_transactions
from ..schemas.transaction import TransactionIn

logger = logging.getLogger(__name__)

_FIXTURE_ADAPTER = TypeAdapter(List[TransactionIn])


class SeedSourceError(Exception):
    """Raised when the upstream fixture cannot be fetched or is not a JSON array."""


def parse_seed_payload(payload: Any) -> list[TransactionIn]:
    if not isinstance(payload, list):
        raise SeedSourceError(f"Seed payload must be a JSON array, got {type(payload).__name__}")
    return _FIXTURE_ADAPTER.validate_python(payload)


async def fetch_seed_records(
    url: Optional[str] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> list[TransactionIn]:
    """Download and validate the seed fixture."""

    target = url or settings.SEED_URL
    if client is None:
        timeout = httpx.Timeout(settings.SEED_TIMEOUT)
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as owned_client:
            return await _fetch(owned_client, target)
    return await _fetch(client, target)


async def _fetch(client: httpx.AsyncClient, url: str) -> list[TransactionIn]:
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("Seed fetch from %s failed: %s", url, exc)
        raise SeedSourceError(f"Could not fetch seed data: {exc}") from exc
    try:
        payload = response.json()
    except ValueError as exc:
        raise SeedSourceError("Seed response is not valid JSON") from exc
    records = parse_seed_payload(payload)
    logger.info("Fetched %d seed records from %s", len(records), url)
    return records


def store_seed_records(db: Session, records: list[TransactionIn]) -> int:
    inserted = insert_transactions(db, records)
    logger.info("Seeded %d transactions", inserted)
    return inserted


__all__ = [
    "SeedSourceError",
    "fetch_seed_records",
    "parse_seed_payload",
    "store_seed_records",
]
