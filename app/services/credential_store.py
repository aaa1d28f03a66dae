"""
app.services.credential_store
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

管理员账号与 Token 的进程内存储。

账号只保存在内存中，进程重启即丢失，与直播状态的生命周期一致。
密码哈希耗时较长，HTTP 接口会把注册 / 登录放到线程池执行，写入账号时加锁。
"""
from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass

from app.core.exceptions import (
    BadCredentials,
    InvalidCredentialsInput,
    MissingToken,
    UsernameTaken,
    WrongAdminSecret,
)
from app.core.logging import get_logger
from app.core.security import (
    check_password,
    create_access_token,
    decode_access_token,
    hash_password,
)
from app.schemas.auth import Identity, TokenData

logger = get_logger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6


@dataclass(frozen=True)
class AdminAccount:
    id: str
    username: str
    password_hash: str


class AdminCredentialStore:
    """管理员账号注册、登录与 Token 校验。

    Attributes:
        admin_secret: 注册管理员所需的邀请码。
    """

    def __init__(self, admin_secret: str, bcrypt_rounds: int | None = None) -> None:
        self.admin_secret = admin_secret
        self._bcrypt_rounds = bcrypt_rounds
        # 小写用户名 -> 账号
        self._admins: dict[str, AdminAccount] = {}
        self._lock = threading.Lock()

    def register(self, username: str, password: str, secret: str) -> TokenData:
        """注册新管理员并直接签发 Token。

        Raises:
            InvalidCredentialsInput: 字段缺失或长度不合法。
            WrongAdminSecret: 邀请码错误。
            UsernameTaken: 用户名已存在。
        """
        if not username or not password or not secret:
            raise InvalidCredentialsInput("所有字段均为必填")
        if secret != self.admin_secret:
            raise WrongAdminSecret("管理员邀请码错误")
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            raise InvalidCredentialsInput(
                f"用户名长度需在 {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} 个字符之间",
            )
        if len(password) < PASSWORD_MIN_LENGTH:
            raise InvalidCredentialsInput(f"密码至少需要 {PASSWORD_MIN_LENGTH} 个字符")

        key = username.lower()
        if key in self._admins:
            raise UsernameTaken("用户名已存在")

        # 哈希在锁外计算，插入前在锁内再查一次重名
        account = AdminAccount(
            id=str(uuid.uuid4()),
            username=username,
            password_hash=hash_password(password, rounds=self._bcrypt_rounds),
        )
        with self._lock:
            if key in self._admins:
                raise UsernameTaken("用户名已存在")
            self._admins[key] = account
        logger.info("管理员已注册 | username=%s", username)
        return TokenData(token=create_access_token(account.id, account.username), username=username)

    def login(self, username: str, password: str) -> TokenData:
        """校验用户名密码并签发 Token。用户不存在与密码错误返回同一种错误。"""
        if not username or not password:
            raise InvalidCredentialsInput("用户名和密码均为必填")

        account = self._admins.get(username.lower())
        if account is None or not check_password(password, account.password_hash):
            logger.info("管理员登录失败 | username=%s", username)
            raise BadCredentials("用户名或密码错误")

        logger.info("管理员登录 | username=%s", account.username)
        return TokenData(
            token=create_access_token(account.id, account.username),
            username=account.username,
        )

    def authenticate(self, token: str | None) -> Identity:
        """把 Bearer Token 解析为身份信息。

        Raises:
            MissingToken: 未提供 Token。
            InvalidToken: Token 无效或已过期。
        """
        if not token:
            raise MissingToken("缺少 Token")
        payload = decode_access_token(token)
        return Identity(id=payload["id"], username=payload["username"], role="admin")
