from fastapi import APIRouter

from linkguard.config.settings import config
from linkguard.core.state import state

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint"""
    return {
        "status": "running",
        "service": config.api.title,
        "version": config.api.version,
        "listener_ready": state.listener_ready,
        "pending_links": len(state.pending_links),
    }


@router.get("/health")
async def health_check():
    """Lightweight health check"""
    return {"status": "ok"}
