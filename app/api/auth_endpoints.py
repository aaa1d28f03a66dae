"""
app.api.auth_endpoints
~~~~~~~~~~~~~~~~~~~~~~

管理员鉴权 REST 接口。

端点:
  - ``POST /register`` → 注册管理员（需要邀请码），返回 Token
  - ``POST /login``    → 登录，返回 Token
  - ``GET  /verify``   → 校验 Bearer Token，返回身份
"""
import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.api.deps import get_bearer_token, get_credential_store
from app.core.rate_limit import limiter
from app.core.settings import settings
from app.schemas.api_response import ApiResponse
from app.schemas.auth import LoginRequest, RegisterRequest, TokenData, VerifyData
from app.services.credential_store import AdminCredentialStore

router: APIRouter = APIRouter()


@router.post("/register", summary="注册管理员", status_code=201, response_model=ApiResponse[TokenData])
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def register(
    request: Request,
    body: RegisterRequest,
    store: AdminCredentialStore = Depends(get_credential_store),
):
    """使用邀请码注册管理员账号，成功后直接返回 Token。

    Args:
        request: FastAPI Request 对象（用于限流判断）。
        body: 用户名、密码与邀请码。
    """
    # bcrypt 是同步的 CPU 计算，放到线程池，避免阻塞 WebSocket 收发
    token = await asyncio.to_thread(store.register, body.username, body.password, body.admin_secret)
    response = ApiResponse.ok(data=token, code=201)
    return JSONResponse(status_code=201, content=response.model_dump())


@router.post("/login", summary="管理员登录", response_model=ApiResponse[TokenData])
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    store: AdminCredentialStore = Depends(get_credential_store),
):
    """校验用户名密码并返回 Token。"""
    token = await asyncio.to_thread(store.login, body.username, body.password)
    return ApiResponse.ok(data=token)


@router.get("/verify", summary="校验 Token", response_model=ApiResponse[VerifyData])
async def verify(
    token: str | None = Depends(get_bearer_token),
    store: AdminCredentialStore = Depends(get_credential_store),
):
    """返回 Bearer Token 对应的管理员身份。缺少 Token 返回 401，无效返回 403。"""
    identity = store.authenticate(token)
    return ApiResponse.ok(data=VerifyData(user=identity))
