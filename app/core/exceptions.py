"""
app.core.exceptions
~~~~~~~~~~~~~~~~~~~

业务异常定义。每个异常携带对应的 HTTP 状态码，
由 ``app.main`` 中注册的异常处理器统一渲染为 ``ApiResponse.fail()``。
"""
from __future__ import annotations


class AuthError(Exception):
    """鉴权相关错误的基类。"""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidCredentialsInput(AuthError):
    """请求字段缺失或格式不合法。"""

    status_code = 400


class MissingToken(AuthError):
    """请求未携带 Bearer Token。"""

    status_code = 401


class BadCredentials(AuthError):
    """用户名或密码错误。"""

    status_code = 401


class InvalidToken(AuthError):
    """Token 签名无效、已过期或声明不完整。"""

    status_code = 403


class WrongAdminSecret(AuthError):
    """管理员邀请码错误。"""

    status_code = 403


class UsernameTaken(AuthError):
    """用户名已被注册（不区分大小写）。"""

    status_code = 409
