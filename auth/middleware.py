"""
認證中間件
保護 /api/admin/* 路由（登錄接口除外），驗證 Bearer 令牌並把 claims 放入 request.state.admin
"""
import logging
import re
from typing import Any, Awaitable, Callable

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from auth import jwt as jwt_lib
from auth.permissions import extract_bearer_token

logger = logging.getLogger(__name__)


class AuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app):
        super().__init__(app)
        self.protected_pattern = re.compile(r"^/api/admin(/.*)?$")
        # 公開路由 (不需要任何認證)
        self.public_patterns = [
            re.compile(r"^/api/admin/login/?$"),
        ]

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Any]]):
        path = request.url.path
        method = request.method

        settings = getattr(request.app.state, "auth_settings", None)
        request.state.auth_settings = settings

        if not self._is_protected(path) or method == "OPTIONS":
            return await call_next(request)

        if settings is None:
            logger.error("AuthMiddleware: 認證未配置，拒絕 %s %s", method, path)
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"success": False, "error": "Service unavailable"},
            )

        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            logger.debug("AuthMiddleware: %s %s 缺少 Bearer 令牌", method, path)
            return self._unauthorized()

        claims = jwt_lib.decode_and_verify(token, settings.jwt_secret)
        if claims is None:
            logger.warning("AuthMiddleware: %s %s 令牌無效", method, path)
            return self._unauthorized()

        request.state.admin = claims
        logger.debug("AuthMiddleware: 用戶 %s 通過驗證訪問 %s %s", claims.get("username", "unknown"), method, path)
        return await call_next(request)

    def _is_protected(self, path: str) -> bool:
        if not self.protected_pattern.fullmatch(path):
            return False
        return not any(p.fullmatch(path) for p in self.public_patterns)

    @staticmethod
    def _unauthorized() -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "error": "Unauthorized"},
            headers={"WWW-Authenticate": "Bearer"},
        )
