from prometheus_fastapi_instrumentator import Instrumentator

from .core.config import settings
from .core.logging import configure_logging
from . import create_app

configure_logging(settings.LOG_LEVEL)
app = create_app()
instrumentator = Instrumentator()


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


# Middleware must be registered before the app starts serving.
instrumentator.instrument(app).expose(app, include_in_schema=False)
