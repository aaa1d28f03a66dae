"""
app.services.room_broadcaster
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

WebSocket 连接广播器 —— 维护直播间内所有连接，提供单播与广播能力。

每个连接持有一个有界的发送队列，由该连接专属的写协程逐帧发出。
投递只是 ``put_nowait``，不会等待网络 I/O，因此:
  - 慢连接 / 已断开的连接不会拖慢对其他连接的投递；
  - 同一个同步步骤内投递的多帧，对每个连接都严格保持投递顺序。
"""
from __future__ import annotations

import asyncio
import uuid

from fastapi import WebSocket

from app.core.logging import get_logger
from app.schemas.auth import Identity

logger = get_logger(__name__)


def new_connection_id() -> str:
    return uuid.uuid4().hex


class ClientConnection:
    """一条 WebSocket 连接及其发送队列。

    Attributes:
        websocket: 底层 WebSocket。
        connection_id: 传输层连接 ID，连接存续期间唯一，重连后会变化。
        identity: 建立连接时通过 Token 校验得到的管理员身份，观众为 ``None``。
        alive: 写协程发送失败后置为 ``False``，之后的投递直接丢弃。
    """

    def __init__(
        self,
        websocket: WebSocket,
        connection_id: str | None = None,
        identity: Identity | None = None,
        queue_size: int = 256,
    ) -> None:
        self.websocket = websocket
        self.connection_id = connection_id or new_connection_id()
        self.identity = identity
        self.alive = True
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)

    @property
    def is_admin(self) -> bool:
        return self.identity is not None

    def deliver(self, frame: str) -> bool:
        """把一帧放入发送队列，不等待。队列已满或连接已失效时丢弃并返回 ``False``。"""
        if not self.alive:
            return False
        try:
            self._outbox.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning("发送队列已满，丢弃消息 | conn=%s", self.connection_id)
            return False
        return True

    async def run_writer(self) -> None:
        """持续把队列中的帧写入 WebSocket，直到发送失败或被取消。"""
        while True:
            frame = await self._outbox.get()
            try:
                await self.websocket.send_text(frame)
            except Exception as e:
                logger.warning("发送失败，停止向该连接投递 | conn=%s | error=%s", self.connection_id, e)
                self.alive = False
                return

    @property
    def pending(self) -> int:
        """尚未发出的帧数。"""
        return self._outbox.qsize()


class RoomBroadcaster:
    """直播间连接广播器。

    Attributes:
        active_connections: 连接 ID 到连接对象的映射。
    """

    def __init__(self, queue_size: int = 256) -> None:
        self.queue_size = queue_size
        self.active_connections: dict[str, ClientConnection] = {}

    async def connect(self, websocket: WebSocket, identity: Identity | None = None) -> ClientConnection:
        """接受新连接并加入在线集合。"""
        await websocket.accept()
        connection = ClientConnection(websocket, identity=identity, queue_size=self.queue_size)
        self.register(connection)
        return connection

    def register(self, connection: ClientConnection) -> None:
        self.active_connections[connection.connection_id] = connection

    def disconnect(self, connection_id: str) -> None:
        """从在线集合移除断开的连接。"""
        self.active_connections.pop(connection_id, None)

    def send_to(self, connection_id: str, frame: str) -> bool:
        """单播给指定连接。"""
        connection = self.active_connections.get(connection_id)
        if connection is None:
            return False
        return connection.deliver(frame)

    def broadcast(self, frame: str) -> int:
        """向所有在线连接投递，单个连接失败不影响其余连接。

        Returns:
            成功放入发送队列的连接数。
        """
        delivered = 0
        for connection in list(self.active_connections.values()):
            if connection.deliver(frame):
                delivered += 1
        failed = len(self.active_connections) - delivered
        if failed:
            logger.debug("广播部分失败 | delivered=%d | failed=%d", delivered, failed)
        return delivered

    @property
    def online_count(self) -> int:
        """当前在线连接数（包含尚未宣告加入的连接）。"""
        return len(self.active_connections)
