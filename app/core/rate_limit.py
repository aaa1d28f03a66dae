"""
app.core.rate_limit
~~~~~~~~~~~~~~~~~~~

HTTP 接口限流配置。

注册 / 登录接口按客户端 IP 限流，防止暴力猜测管理员邀请码与密码。
"""
from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.core.logging import get_logger
from app.schemas.api_response import ApiResponse

logger = get_logger(__name__)

# --------- HTTP 接口限流器 ---------
# 基于客户端 IP 地址进行限流，计数存放在进程内存中
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """把 slowapi 的超限异常渲染为统一的 ApiResponse 格式。"""
    logger.warning(
        "请求过于频繁 | path=%s | client=%s | limit=%s",
        request.url.path, get_remote_address(request), exc.detail,
    )
    response = ApiResponse.fail(msg="请求过于频繁，请稍后再试", code=429)
    return JSONResponse(status_code=429, content=response.model_dump())
