"""
헬스 체크 엔드포인트

GET /api/health - 서버 상태 확인
"""

from fastapi import APIRouter, Depends

from core.config.loader import Settings
from core.constants import APP_VERSION
from web.dependencies import get_app_settings
from web.models.responses import HealthResponse

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse:
    """서버 상태 확인

    Returns:
        HealthResponse: status, mode, version 정보
    """
    return HealthResponse(
        status="ok",
        mode=settings.mode.value,
        version=APP_VERSION,
    )
