"""
app.schemas.auth
~~~~~~~~~~~~~~~~

管理员注册 / 登录 / Token 校验接口的请求与响应模型。

请求字段全部允许缺省，缺失字段由 ``AdminCredentialStore`` 统一返回 400，
而不是交给 FastAPI 默认的 422。
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """管理员注册请求体。"""

    username: str = Field(default="", description="用户名（3-20 个字符）")
    password: str = Field(default="", description="密码（至少 6 个字符）")
    admin_secret: str = Field(default="", description="管理员邀请码")


class LoginRequest(BaseModel):
    """管理员登录请求体。"""

    username: str = Field(default="", description="用户名")
    password: str = Field(default="", description="密码")


class TokenData(BaseModel):
    """注册 / 登录成功后返回的 Token。"""

    token: str = Field(..., description="Bearer Token")
    username: str = Field(..., description="注册时使用的原始用户名")


class Identity(BaseModel):
    """Token 中携带的身份信息。"""

    id: str = Field(..., description="管理员 ID")
    username: str = Field(..., description="用户名")
    role: Literal["admin"] = Field(default="admin", description="角色")


class VerifyData(BaseModel):
    """``GET /api/verify`` 的响应数据。"""

    valid: bool = Field(default=True, description="Token 是否有效")
    user: Identity = Field(..., description="Token 对应的身份")
