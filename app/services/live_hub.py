"""
app.services.live_hub
~~~~~~~~~~~~~~~~~~~~~

直播间事件中枢 —— 把客户端上行事件翻译为会话登记处 / 观众目录 / 聊天记录的操作，
再把结果广播给所有连接。

整个进程只有一个 ``LiveHub``，在 FastAPI lifespan 中创建并挂载到 ``app.state``。

所有处理函数都是同步的，内部没有 ``await``，在单个事件循环上天然串行执行，
因此 join / leave / post / start / stop 之间不存在竞争，也不需要加锁。
真正的网络发送由每个连接自己的写协程完成（见 ``RoomBroadcaster``）。

推流者断线问题:
  默认情况下，推流者连接断开**不会**自动下播，会话保持 live 直到显式下播
  或管理员重连后重新开播覆盖。开启 ``AUTO_STOP_ON_PUBLISHER_DISCONNECT``
  后，发起当前开播的连接一旦断开就会强制下播。
"""
from __future__ import annotations

from collections.abc import Callable

from pydantic import BaseModel, ValidationError

from app.core.logging import get_logger
from app.core.settings import Settings
from app.schemas.live_interactions import (
    ChatMessage,
    ChatMessageData,
    JoinStreamData,
    StreamAnnouncementData,
    StreamStartedData,
    StreamStatusData,
    StreamStatusResponseData,
    TitleData,
    encode_event,
    parse_inbound_event,
)
from app.services.chat_log import ChatLog
from app.services.credential_store import AdminCredentialStore
from app.services.presence import PresenceDirectory
from app.services.room_broadcaster import ClientConnection, RoomBroadcaster
from app.services.session_registry import SessionRegistry

logger = get_logger(__name__)

STREAM_STARTED_TEXT = "🔴 The stream has started!"
STREAM_ENDED_TEXT = "⬛ The stream has ended"

# 仅管理员连接可以触发的事件
ADMIN_EVENTS = frozenset({"stream-started", "stream-ended", "update-title"})


class LiveHub:
    """直播间事件中枢。

    Attributes:
        registry: 直播会话登记处。
        presence: 在线观众目录。
        chat_log: 聊天记录环形缓冲区。
        broadcaster: 连接广播器。
        credentials: 管理员账号与 Token 校验。
        auto_stop_on_publisher_disconnect: 推流者断线时是否强制下播。
    """

    def __init__(
        self,
        registry: SessionRegistry,
        presence: PresenceDirectory,
        chat_log: ChatLog,
        broadcaster: RoomBroadcaster,
        credentials: AdminCredentialStore,
        auto_stop_on_publisher_disconnect: bool = False,
    ) -> None:
        self.registry = registry
        self.presence = presence
        self.chat_log = chat_log
        self.broadcaster = broadcaster
        self.credentials = credentials
        self.auto_stop_on_publisher_disconnect = auto_stop_on_publisher_disconnect
        self._handlers: dict[str, Callable[[ClientConnection, BaseModel], None]] = {
            "join-stream": self.on_join,
            "chat-message": self.on_chat_message,
            "stream-started": self.on_stream_started,
            "stream-ended": self.on_stream_ended,
            "update-title": self.on_update_title,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> LiveHub:
        """按配置组装一个全新的中枢（所有状态均为空）。"""
        return cls(
            registry=SessionRegistry(default_title=settings.DEFAULT_STREAM_TITLE),
            presence=PresenceDirectory(),
            chat_log=ChatLog(
                capacity=settings.CHAT_HISTORY_LIMIT,
                max_length=settings.CHAT_MAX_LENGTH,
                admin_label=settings.ADMIN_CHAT_LABEL,
            ),
            broadcaster=RoomBroadcaster(queue_size=settings.WS_SEND_QUEUE_SIZE),
            credentials=AdminCredentialStore(
                admin_secret=settings.ADMIN_SECRET,
                bcrypt_rounds=settings.BCRYPT_ROUNDS,
            ),
            auto_stop_on_publisher_disconnect=settings.AUTO_STOP_ON_PUBLISHER_DISCONNECT,
        )

    # ── 入口 ──────────────────────────────────────────────────────────

    def handle_frame(self, connection: ClientConnection, raw: str | bytes) -> None:
        """解析并分发一帧上行消息。任何非法帧都只记录日志后丢弃，不影响连接。"""
        try:
            event = parse_inbound_event(raw)
        except ValidationError as e:
            logger.warning(
                "丢弃非法事件 | conn=%s | errors=%d | first=%s",
                connection.connection_id, e.error_count(), e.errors()[0]["msg"],
            )
            return

        if event.event in ADMIN_EVENTS and not connection.is_admin:
            logger.warning(
                "非管理员连接尝试执行管理操作，已忽略 | conn=%s | event=%s",
                connection.connection_id, event.event,
            )
            return

        try:
            self._handlers[event.event](connection, event.data)
        except Exception as e:
            logger.error(
                "事件处理异常 | conn=%s | event=%s | error=%s",
                connection.connection_id, event.event, e, exc_info=True,
            )

    # ── 观众 ──────────────────────────────────────────────────────────

    def on_join(self, connection: ClientConnection, data: JoinStreamData) -> None:
        """观众宣告加入：登记 → 单播当前状态与历史 → 广播人数与系统消息。"""
        count = self.presence.join(connection.connection_id, data.display_name)
        viewer = self.presence.get(connection.connection_id)
        logger.info("观众加入 | name=%s | 在线: %d", viewer.display_name, count)

        status = StreamStatusData.from_snapshot(self.registry.snapshot())
        self.broadcaster.send_to(connection.connection_id, encode_event("stream-status", status))
        self.broadcaster.send_to(connection.connection_id, encode_event("chat-history", self.chat_log.history()))

        self.broadcaster.broadcast(encode_event("viewer-count", count))
        self._announce(f"{viewer.display_name} joined the stream")

    def on_disconnect(self, connection: ClientConnection) -> None:
        """连接断开：移出广播器与观众目录，必要时按策略强制下播。"""
        self.broadcaster.disconnect(connection.connection_id)

        count, removed = self.presence.leave(connection.connection_id)
        if removed is not None:
            logger.info("观众离开 | name=%s | 在线: %d", removed.display_name, count)
            self.broadcaster.broadcast(encode_event("viewer-count", count))
            self._announce(f"{removed.display_name} left the stream")

        if (
            self.registry.is_live
            and self.registry.publisher_connection_id == connection.connection_id
        ):
            if self.auto_stop_on_publisher_disconnect:
                logger.warning("推流者连接断开，自动下播 | conn=%s", connection.connection_id)
                self._stop_stream()
            else:
                logger.warning(
                    "推流者连接断开，直播保持进行中直到显式下播 | conn=%s | peer=%s",
                    connection.connection_id, self.registry.snapshot().publisher_peer_id,
                )

    # ── 聊天 ──────────────────────────────────────────────────────────

    def on_chat_message(self, connection: ClientConnection, data: ChatMessageData) -> None:
        if data.is_admin and not connection.is_admin:
            logger.debug("非管理员连接声明管理员身份，按普通观众处理 | conn=%s", connection.connection_id)
        message = self.chat_log.post(
            data.text,
            is_admin=data.is_admin and connection.is_admin,
            viewer=self.presence.get(connection.connection_id),
            client_name=data.display_name,
        )
        if message is None:
            return
        self.broadcaster.broadcast(encode_event("chat-message", message))

    # ── 管理员 ────────────────────────────────────────────────────────

    def on_stream_started(self, connection: ClientConnection, data: StreamStartedData) -> None:
        snapshot = self.registry.start_stream(
            data.publisher_peer_id,
            data.title,
            connection_id=connection.connection_id,
        )
        logger.info(
            "🔴 开播 | peer=%s | title=%s | admin=%s",
            snapshot.publisher_peer_id, snapshot.title, connection.identity.username,
        )
        announcement = StreamAnnouncementData(
            publisher_peer_id=snapshot.publisher_peer_id,
            title=snapshot.title,
        )
        self.broadcaster.broadcast(encode_event("stream-started", announcement))
        self._announce(STREAM_STARTED_TEXT)

    def on_stream_ended(self, connection: ClientConnection, data: BaseModel) -> None:
        logger.info("⬛ 下播 | admin=%s", connection.identity.username)
        self._stop_stream()

    def on_update_title(self, connection: ClientConnection, data: TitleData) -> None:
        if not self.registry.update_title(data.title):
            return
        self.broadcaster.broadcast(encode_event("title-updated", TitleData(title=data.title)))

    # ── 查询 ──────────────────────────────────────────────────────────

    def status(self) -> StreamStatusResponseData:
        """当前直播状态与在线人数，供 HTTP 接口使用。"""
        snapshot = self.registry.snapshot()
        return StreamStatusResponseData(
            is_live=snapshot.is_live,
            publisher_peer_id=snapshot.publisher_peer_id,
            started_at=snapshot.started_at,
            title=snapshot.title,
            viewer_count=self.presence.count(),
        )

    # ── 内部 ──────────────────────────────────────────────────────────

    def _stop_stream(self) -> None:
        self.registry.stop_stream()
        self.broadcaster.broadcast(encode_event("stream-ended"))
        self._announce(STREAM_ENDED_TEXT)

    def _announce(self, text: str) -> ChatMessage:
        message = self.chat_log.system(text)
        self.broadcaster.broadcast(encode_event("chat-message", message))
        return message
