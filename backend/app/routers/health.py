from fastapi import APIRouter, Depends

from app.config import settings
from app.services.session_service import SessionStore, get_session_store

router = APIRouter()


@router.get("/health")
def health_check(store: SessionStore = Depends(get_session_store)) -> dict:
    """Liveness check that also reports which backends chat turns will use."""
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "llm_provider": settings.llm_provider,
        "property_data": "batchdata" if settings.batchdata_api_key else "mock",
        "dedup_discriminator": store.policy.value,
        "chat_sessions": len(store),
    }
