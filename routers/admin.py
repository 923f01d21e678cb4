"""
管理端鉴权路由
- POST /api/admin/login：用户名+密码登录，返回 HS256 Bearer Token（24 小时有效，exp 为毫秒）
- GET  /api/admin/verify：返回当前令牌的 claims
- GET  /api/admin/ping：仅 admin 角色
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from auth import jwt as jwt_lib
from auth.config import AuthSettings
from auth.permissions import get_auth_settings, get_current_admin, require_roles
from auth.users import AdminUserStore, PublicUser

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/admin", tags=["管理端鉴权"])


# ============================
# 模型定义
# ============================

class LoginRequest(BaseModel):
    username: Optional[str] = Field(None, description="用户名")
    password: Optional[str] = Field(None, description="明文密码")


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: PublicUser


class VerifyResponse(BaseModel):
    success: bool = True
    user: Dict[str, Any]


# ============================
# 内部工具
# ============================

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def get_user_store(settings: AuthSettings = Depends(get_auth_settings)) -> AdminUserStore:
    return AdminUserStore(settings.config_path)


# ============================
# 路由
# ============================

@router.post("/login", response_model=LoginResponse)
async def admin_login(
    body: LoginRequest,
    settings: AuthSettings = Depends(get_auth_settings),
    store: AdminUserStore = Depends(get_user_store),
):
    """
    用户名+密码登录（SHA-256 哈希验证）
    成功后记录 last_login，并签发包含 id/username/role 的令牌
    """
    if not body.username or not body.password:
        return _error(status.HTTP_400_BAD_REQUEST, "Username and password are required")

    logger.info("用户 %s 尝试登录", body.username)
    user = store.authenticate(body.username, body.password)
    if user is None:
        logger.warning("用户 %s 登录失败", body.username)
        return _error(status.HTTP_401_UNAUTHORIZED, "Invalid username or password")

    store.record_login(user.id)
    token = jwt_lib.encode({"id": user.id, "username": user.username, "role": user.role}, settings.jwt_secret)
    logger.info("用户 %s 登录成功，角色: %s", user.username, user.role)
    return LoginResponse(
        token=token,
        user=PublicUser(id=user.id, username=user.username, email=user.email, role=user.role),
    )


@router.get("/verify", response_model=VerifyResponse)
async def admin_verify(identity: Dict[str, Any] = Depends(get_current_admin)) -> VerifyResponse:
    """返回当前令牌中的 claims（含 exp）"""
    return VerifyResponse(user=identity)


@router.get("/ping")
async def admin_ping(identity: Dict[str, Any] = Depends(require_roles("admin"))) -> Dict[str, Any]:
    return {"success": True, "role": identity.get("role")}
