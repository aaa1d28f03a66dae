"""
app.core.settings
~~~~~~~~~~~~~~~~~

集中式配置管理，基于 pydantic-settings 自动从 ``.env`` 文件加载。

支持多环境配置（dev / test / prod），加载顺序为:
  1. 环境变量（最高优先级）
  2. ``.env.{ENVIRONMENT}`` 环境专属文件
  3. ``.env`` 基础文件
  4. 字段默认值（最低优先级）
"""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# 读取当前环境标识（在 Settings 类定义之前，用于决定加载哪个 .env 文件）
_CURRENT_ENV: str = os.getenv("ENVIRONMENT", "dev")


class Settings(BaseSettings):
    """全局配置对象，字段值按如下优先级加载：环境变量 > .env.{env} > .env > 默认值。"""

    # ── 基础 ──────────────────────────────────────────────────────────
    PROJECT_NAME: str = Field(default="Live Relay", description="项目名称")
    VERSION: str = Field(default="0.1.0", description="版本号")
    ENVIRONMENT: Literal["dev", "test", "prod"] = Field(
        default="dev",
        description="运行环境：dev / test / prod",
    )

    # ── 服务 ──────────────────────────────────────────────────────────
    HOST: str = Field(default="0.0.0.0", description="服务监听地址")
    PORT: int = Field(default=3000, description="服务监听端口")
    LOG_LEVEL: str = Field(default="INFO", description="日志级别（可被环境属性覆盖）")
    ALLOWED_ORIGINS: list[str] = Field(
        default_factory=list,
        description="prod 环境允许的 CORS 来源",
    )

    # ── 鉴权 ──────────────────────────────────────────────────────────
    JWT_SECRET: str = Field(
        default="fallback_dev_secret_change_me",
        description="签发管理员 Token 的 HMAC 密钥",
    )
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT 签名算法")
    JWT_EXPIRE_HOURS: int = Field(default=24, description="Token 有效期（小时）")
    ADMIN_SECRET: str = Field(
        default="streamadmin2024",
        description="注册管理员账号所需的邀请码",
    )
    BCRYPT_ROUNDS: int = Field(default=12, description="bcrypt 加盐轮数")
    AUTH_RATE_LIMIT: str = Field(
        default="5/minute",
        description="注册 / 登录接口的单 IP 限流规则（slowapi 语法）",
    )

    # ── 直播间 ────────────────────────────────────────────────────────
    DEFAULT_STREAM_TITLE: str = Field(default="Live Stream", description="默认直播标题")
    CHAT_HISTORY_LIMIT: int = Field(default=50, description="聊天记录环形缓冲区容量")
    CHAT_MAX_LENGTH: int = Field(default=500, description="单条聊天消息最大长度（转义后）")
    ADMIN_CHAT_LABEL: str = Field(default="🔴 ADMIN", description="管理员消息的固定署名")
    AUTO_STOP_ON_PUBLISHER_DISCONNECT: bool = Field(
        default=False,
        description="推流者连接断开时是否自动结束直播（默认保持直播状态，等待重连后重新宣告）",
    )

    # ── WebSocket ─────────────────────────────────────────────────────
    WS_SEND_QUEUE_SIZE: int = Field(
        default=256,
        description="每个连接的待发送队列上限，满了丢弃该连接的新消息",
    )
    WS_PING_INTERVAL: float = Field(default=25.0, description="WebSocket 心跳间隔（秒）")
    WS_PING_TIMEOUT: float = Field(default=60.0, description="WebSocket 心跳超时（秒）")

    # ── Pydantic Settings ─────────────────────────────────────────────
    # 先加载 .env.{env} 再加载 .env，前者优先级更高
    model_config = SettingsConfigDict(
        env_file=(f".env.{_CURRENT_ENV}", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── 环境判断 ──────────────────────────────────────────────────────

    @property
    def is_prod(self) -> bool:
        """当前是否为生产环境。"""
        return self.ENVIRONMENT == "prod"

    @property
    def is_test(self) -> bool:
        """当前是否为测试环境。"""
        return self.ENVIRONMENT == "test"

    @property
    def is_dev(self) -> bool:
        """当前是否为开发环境。"""
        return self.ENVIRONMENT == "dev"

    # ── 环境差异化行为 ────────────────────────────────────────────────

    @property
    def debug(self) -> bool:
        """是否开启 debug 模式。仅 dev 环境开启。"""
        return self.is_dev

    @property
    def reload(self) -> bool:
        """是否开启热重载。仅 dev 环境开启。"""
        return self.is_dev

    @property
    def effective_log_level(self) -> str:
        """根据环境自动推断日志级别。

        - dev  → INFO
        - test → DEBUG（方便排查测试失败）
        - prod → WARNING（减少噪音）

        如果环境变量中显式设置了 LOG_LEVEL，会覆盖此默认推断。
        """
        env_log = os.getenv("LOG_LEVEL")
        if env_log:
            return env_log
        return {
            "dev": "INFO",
            "test": "DEBUG",
            "prod": "WARNING",
        }.get(self.ENVIRONMENT, "INFO")

    @property
    def allow_cors_all_origins(self) -> bool:
        """是否允许所有 CORS 来源。非 prod 环境允许，方便本地调试。"""
        return not self.is_prod


@lru_cache
def get_settings() -> Settings:
    """获取全局 Settings 单例（带缓存，避免重复解析 .env）。"""
    return Settings()


settings: Settings = get_settings()
