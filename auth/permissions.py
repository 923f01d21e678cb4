"""
身份與角色檢查工具
提供 FastAPI 依賴：從 Authorization: Bearer <token> 解析管理員身份，並按角色授權
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from auth import jwt as jwt_lib
from auth.config import AuthSettings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    只接受字面前綴 "Bearer "（大寫 B、一個空格）。
    缺少 header、前綴不符或令牌為空時返回 None，不交給解碼器。
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):]
    return token or None


def get_auth_settings(request: Request) -> AuthSettings:
    """從請求上下文取得啟動時解析的 AuthSettings。"""
    settings = getattr(request.state, "auth_settings", None)
    if settings is None:
        settings = getattr(request.app.state, "auth_settings", None)
    if settings is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service unavailable")
    return settings


def get_current_admin(
    request: Request,
    authorization: Optional[str] = Header(None),
    settings: AuthSettings = Depends(get_auth_settings),
) -> Dict[str, Any]:
    """
    返回已驗證的 claims。中間件已驗證過時直接復用 request.state.admin。
    校驗失敗一律 401，不區分過期、篡改或格式錯誤。
    """
    claims = getattr(request.state, "admin", None)
    if claims is not None:
        return claims

    token = extract_bearer_token(authorization)
    if token is None:
        raise _unauthorized()
    claims = jwt_lib.decode_and_verify(token, settings.jwt_secret)
    if claims is None:
        logger.warning("get_current_admin: 令牌驗證失敗 (%s %s)", request.method, request.url.path)
        raise _unauthorized()
    return claims


def require_roles(*roles: str):
    """
    依賴：校驗 claims 中的 role 是否在允許列表中，否則 403。
    """
    allowed = set(roles)

    def _dep(identity: Dict[str, Any] = Depends(get_current_admin)) -> Dict[str, Any]:
        if identity.get("role") not in allowed:
            logger.warning("require_roles: 用戶 %s 角色 %s 不足", identity.get("username"), identity.get("role"))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return identity
    return _dep
