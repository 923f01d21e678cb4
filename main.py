from contextlib import asynccontextmanager
from typing import Optional
import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from auth import jwt as jwt_lib
from auth.config import AuthSettings, load_auth_settings
from auth.middleware import AuthMiddleware
from config import ConfigManager
from logging_config import get_colorful_logger
from routers import include_routers

logger = logging.getLogger(__name__)


def _build_lifespan(auth_settings: Optional[AuthSettings]):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理器"""
        # 加密原语或密钥缺失时直接中止启动，不降级为无认证模式
        logger.info("正在初始化认证系统...")
        jwt_lib.ensure_crypto_available()
        if getattr(app.state, "auth_settings", None) is None:
            app.state.auth_settings = auth_settings or load_auth_settings()
        logger.info("认证系统初始化完成")
        yield
        logger.info("应用已关闭")
    return lifespan


# 中间件：记录请求和响应信息
async def log_requests(request: Request, call_next):
    start_time = time.time()
    logger.info("Request: %s %s", request.method, request.url.path)
    response = await call_next(request)
    process_time = time.time() - start_time
    logger.info("Response: %s (处理时间: %.2fs)", response.status_code, process_time)
    return response


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """统一错误响应格式: {"success": false, "error": ...}"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """请求体校验失败（类型错误、非 JSON）统一返回 400，不暴露字段细节"""
    logger.debug("Request validation failed: %s %s", request.method, request.url.path)
    if request.url.path.rstrip("/") == "/api/admin/login":
        message = "Username and password are required"
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"success": False, "error": message})


def create_app(
    auth_settings: Optional[AuthSettings] = None,
    config_manager: Optional[ConfigManager] = None,
) -> FastAPI:
    """
    创建 FastAPI 应用。
    auth_settings 为空时在启动阶段从环境变量 / auth.json 解析（缺少密钥则启动失败）。
    """
    config_manager = config_manager or ConfigManager()

    app = include_routers(FastAPI(title="Equipment Site Admin API", lifespan=_build_lifespan(auth_settings)))
    if auth_settings is not None:
        app.state.auth_settings = auth_settings

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # 注册中间件（后注册者先执行：CORS -> 认证 -> 日志）
    app.add_middleware(BaseHTTPMiddleware, dispatch=log_requests)
    app.add_middleware(AuthMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config_manager.get("cors", ["*"])),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


if __name__ == "__main__":
    import uvicorn

    manager = ConfigManager()
    get_colorful_logger(None, level=getattr(logging, str(manager.get("log_level", "INFO")).upper(), logging.INFO))
    uvicorn.run(create_app(config_manager=manager), host=manager.get("host", "0.0.0.0"), port=int(manager.get("port", 8080)), workers=1)
