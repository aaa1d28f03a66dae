"""
app.main
~~~~~~~~

FastAPI 应用入口 —— 注册路由、挂载中间件、定义生命周期。
"""
from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from app.api import auth_endpoints, live_endpoints, live_stream_ws
from app.core.exceptions import AuthError
from app.core.logging import get_logger, setup_logging
from app.core.rate_limit import limiter, rate_limit_exceeded_handler
from app.core.settings import settings
from app.schemas.api_response import ApiResponse
from app.services.live_hub import LiveHub

# 初始化日志系统（必须在其他模块之前）
setup_logging()
logger = get_logger(__name__)


# ── 生命周期 ──────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期钩子。直播状态只存在于内存，每次启动都从“未开播”开始。"""
    # ── 启动 ──
    app.state.live_hub = LiveHub.from_settings(settings)
    logger.info(
        "🚀 应用已启动 | env=%s | debug=%s | log_level=%s | auto_stop=%s",
        settings.ENVIRONMENT,
        settings.debug,
        settings.effective_log_level,
        settings.AUTO_STOP_ON_PUBLISHER_DISCONNECT,
    )
    yield
    # ── 关闭 ──
    logger.info("👋 应用已关闭 | 在线观众: %d", app.state.live_hub.presence.count())


# ── 创建 FastAPI 实例 ─────────────────────────────────────────────────

app: FastAPI = FastAPI(
    title=settings.PROJECT_NAME,
    description="单主播直播中继：信令、观众在线状态与聊天室",
    version=settings.VERSION,
    debug=settings.debug,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# ── CORS 中间件 ───────────────────────────────────────────────────────
if settings.allow_cors_all_origins:
    # dev / test 环境：允许所有来源，方便本地调试
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    # prod 环境：仅允许 ALLOWED_ORIGINS 中配置的来源
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

# ── 路由挂载 ──────────────────────────────────────────────────────────
app.include_router(auth_endpoints.router, prefix="/api", tags=["Auth"])
app.include_router(live_endpoints.router, prefix="/api", tags=["Live Stream"])
app.include_router(live_stream_ws.router, tags=["WebSocket Live"])


# ── 全局异常处理器 ────────────────────────────────────────────────────

@app.exception_handler(AuthError)
async def auth_exception_handler(request: Request, exc: AuthError) -> JSONResponse:
    """鉴权错误按异常自带的状态码返回。"""
    response = ApiResponse.fail(msg=exc.message, code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=response.model_dump())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """捕获所有未处理异常，返回统一的 ApiResponse.fail() 格式。"""
    logger.error("未捕获异常: %s %s -> %s", request.method, request.url, exc, exc_info=True)
    # 非 prod 环境返回详细错误信息，prod 环境隐藏内部细节
    detail = str(exc) if not settings.is_prod else "服务器内部错误"
    response = ApiResponse.fail(msg=detail, code=500, data=None)
    return JSONResponse(
        status_code=500,
        content=response.model_dump(),
    )


@app.get("/health", tags=["System"])
async def health_check() -> JSONResponse:
    """验证服务是否正常运行。"""
    return JSONResponse(
        content={
            "status": "ok",
            "environment": settings.ENVIRONMENT,
            "debug": settings.debug,
            "log_level": settings.effective_log_level,
            "message": "直播中继已就绪！🚀",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.reload,  # 仅 dev 环境开启热重载
        log_level=settings.effective_log_level.lower(),
        ws_ping_interval=settings.WS_PING_INTERVAL,
        ws_ping_timeout=settings.WS_PING_TIMEOUT,
        access_log=not settings.is_prod,  # 管理员 Token 在 /ws 查询串中，prod 不记录访问日志
    )
