"""
app.core.security
~~~~~~~~~~~~~~~~~

密码哈希（bcrypt）与管理员 Token 签发 / 校验（PyJWT, HS256）。

bcrypt 只接受 72 字节以内的输入（bcrypt 5.x 超长直接抛 ``ValueError``），
所以密码先做 SHA-256 再 base64 编码（固定 44 字节）后交给 bcrypt，
任意长度的密码都能注册和登录。
"""
from __future__ import annotations

import base64
import datetime
import hashlib

import bcrypt
import jwt

from app.core.exceptions import InvalidToken
from app.core.logging import get_logger
from app.core.settings import settings

logger = get_logger(__name__)


def _prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode()).digest())


def hash_password(password: str, rounds: int | None = None) -> str:
    """使用 bcrypt 生成带盐哈希。"""
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_prehash(password), salt).decode()


def check_password(password: str, password_hash: str) -> bool:
    """校验明文密码与已存储的哈希是否匹配。"""
    return bcrypt.checkpw(_prehash(password), password_hash.encode())


def create_access_token(user_id: str, username: str) -> str:
    """签发管理员 Token。

    Args:
        user_id: 管理员 ID，写入 ``id`` 与 ``sub`` 声明。
        username: 用户名。

    Returns:
        HS256 签名的 JWT 字符串。
    """
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        "sub": user_id,
        "id": user_id,
        "username": username,
        "role": "admin",
        "iat": now,
        "exp": now + datetime.timedelta(hours=settings.JWT_EXPIRE_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """解码并校验管理员 Token。

    Raises:
        InvalidToken: 签名无效、已过期，或缺少管理员声明。
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        logger.info("Token 已过期: %s", e)
        raise InvalidToken("Token 无效或已过期") from e
    except jwt.InvalidTokenError as e:
        logger.info("Token 无效: %s", e)
        raise InvalidToken("Token 无效或已过期") from e

    if payload.get("role") != "admin" or not payload.get("id") or not payload.get("username"):
        raise InvalidToken("Token 无效或已过期")
    return payload
