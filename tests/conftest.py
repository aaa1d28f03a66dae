"""
tests.conftest
~~~~~~~~~~~~~~

共享 pytest fixtures —— 全新的直播中枢、假连接，以及读取连接发送队列的辅助函数。
"""
from __future__ import annotations

import json
import os
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

# ── 在所有测试导入前设置环境变量 ─────────────────────────────────────
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-please-ignore-0123456789")
os.environ.setdefault("ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")  # 测试中使用最低轮数，加快哈希
os.environ.setdefault("AUTH_RATE_LIMIT", "1000/minute")

from app.core.settings import settings  # noqa: E402
from app.schemas.auth import Identity  # noqa: E402
from app.services.live_hub import LiveHub  # noqa: E402
from app.services.room_broadcaster import ClientConnection  # noqa: E402

ADMIN_SECRET: str = settings.ADMIN_SECRET


def make_connection(
    hub: LiveHub | None = None,
    connection_id: str | None = None,
    admin: bool = False,
    queue_size: int = 256,
) -> ClientConnection:
    """创建一个挂着 mock WebSocket 的连接，传入 hub 时同时注册到广播器。"""
    websocket = MagicMock()
    websocket.send_text = AsyncMock()
    identity = Identity(id="admin-id", username="boss") if admin else None
    connection = ClientConnection(
        websocket,
        connection_id=connection_id,
        identity=identity,
        queue_size=queue_size,
    )
    if hub is not None:
        hub.broadcaster.register(connection)
    return connection


def drain(connection: ClientConnection) -> list[dict[str, Any]]:
    """取出连接发送队列中所有待发帧，按投递顺序解析为 dict。"""
    frames: list[dict[str, Any]] = []
    while not connection._outbox.empty():
        frames.append(json.loads(connection._outbox.get_nowait()))
    return frames


def events(frames: list[dict[str, Any]]) -> list[str]:
    return [frame["event"] for frame in frames]


def send(hub: LiveHub, connection: ClientConnection, event: str, data: Any = None) -> None:
    """模拟客户端上行一帧。"""
    frame: dict[str, Any] = {"event": event}
    if data is not None:
        frame["data"] = data
    hub.handle_frame(connection, json.dumps(frame))


@pytest.fixture()
def hub() -> LiveHub:
    """每个测试一个全新的直播中枢。"""
    return LiveHub.from_settings(settings)
