"""
健康检查路由
"""
from datetime import datetime, timezone
from typing import Dict, Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

from auth import jwt as jwt_lib
from auth.errors import CryptoUnavailableError

router = APIRouter(prefix="/api/health", tags=["健康检查"])


class HealthStatus(BaseModel):
    """健康状态响应模型"""
    status: str  # "healthy" 或 "unhealthy"
    timestamp: str
    services: Dict[str, Any]


@router.get("", response_model=HealthStatus)
async def get_system_health(request: Request):
    """获取系统整体健康状态"""
    try:
        jwt_lib.ensure_crypto_available()
        crypto_ok = True
    except CryptoUnavailableError:
        crypto_ok = False

    auth_configured = getattr(request.app.state, "auth_settings", None) is not None

    return HealthStatus(
        status="healthy" if crypto_ok and auth_configured else "unhealthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        services={"crypto": crypto_ok, "auth_configured": auth_configured},
    )
