import uuid

from fastapi import FastAPI, Request

from linkguard.api import admin, external, health, retry
from linkguard.config.settings import config
from linkguard.core.logging import setup_logging

setup_logging(config.logging)

app = FastAPI(
    title=config.api.title,
    version=config.api.version,
    docs_url="/docs" if config.api.debug else None,
    redoc_url=None
)


@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    request.state.request_id = uuid.uuid4().hex[:12]
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


# Routes
app.include_router(health.router, tags=["Health"])
app.include_router(external.router, prefix="/external", tags=["External"])
app.include_router(retry.router, prefix="/retry", tags=["Retry"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])
