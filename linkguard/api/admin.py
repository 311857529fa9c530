from fastapi import APIRouter, Depends, HTTPException, Security
from fastapi.security import APIKeyHeader

from linkguard.config.settings import config

router = APIRouter()

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: str = Security(api_key_header)):
    """Verify API key for admin endpoints"""
    expected_key = config.api.admin_api_key
    if not expected_key:
        return None

    if api_key != expected_key:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return api_key


@router.get("/config", dependencies=[Depends(verify_api_key)])
async def get_config():
    """Get current configuration (admin only)"""
    return {
        "deeplink": config.deeplink.model_dump(mode="json"),
        "retry": config.retry.model_dump(mode="json"),
        "pending": config.pending.model_dump(mode="json"),
        "logging": config.logging.model_dump(mode="json"),
    }
