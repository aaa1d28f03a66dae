"""
app.services.chat_log
~~~~~~~~~~~~~~~~~~~~~

聊天记录环形缓冲区 —— 保存最近 N 条聊天 / 系统消息，新观众加入时整体回放。

超出容量时从头部淘汰最旧的一条；消息创建后不可变，除淘汰外不会被删除。
"""
from __future__ import annotations

import uuid
from collections import deque
from datetime import datetime, timezone

from app.core.logging import get_logger
from app.schemas.live_interactions import ChatKind, ChatMessage, ViewerRecord

logger = get_logger(__name__)

ANONYMOUS_NAME = "Anonymous"


def sanitize_text(raw_text: object) -> str:
    """去掉首尾空白并转义 ``<``、``>``、``"``，不做其它清洗。非字符串视为空文本。"""
    if not isinstance(raw_text, str):
        return ""
    return (
        raw_text.strip()
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def resolve_author(
    is_admin: bool,
    viewer: ViewerRecord | None,
    client_name: str | None,
    admin_label: str,
) -> str:
    """确定消息署名：管理员固定标签 > 目录中的昵称 > 客户端自报昵称 > Anonymous。"""
    if is_admin:
        return admin_label
    if viewer is not None:
        return viewer.display_name
    return client_name or ANONYMOUS_NAME


def _new_message(kind: ChatKind, text: str, display_name: str | None = None) -> ChatMessage:
    return ChatMessage(
        id=str(uuid.uuid4()),
        kind=kind,
        display_name=display_name,
        text=text,
        timestamp=datetime.now(timezone.utc),
    )


class ChatLog:
    """固定容量的聊天记录。

    Attributes:
        capacity: 最多保留的消息条数。
        max_length: 转义后单条消息允许的最大字符数。
        admin_label: 管理员消息的固定署名。
    """

    def __init__(
        self,
        capacity: int = 50,
        max_length: int = 500,
        admin_label: str = "🔴 ADMIN",
    ) -> None:
        self.capacity = capacity
        self.max_length = max_length
        self.admin_label = admin_label
        self._messages: deque[ChatMessage] = deque(maxlen=capacity)

    def append(self, message: ChatMessage) -> None:
        """追加到尾部，超出容量时 deque 自动淘汰头部。"""
        self._messages.append(message)

    def history(self) -> list[ChatMessage]:
        """按时间正序返回当前记录的副本。"""
        return list(self._messages)

    def post(
        self,
        raw_text: object,
        *,
        is_admin: bool = False,
        viewer: ViewerRecord | None = None,
        client_name: str | None = None,
    ) -> ChatMessage | None:
        """校验并记录一条用户 / 管理员消息。

        Args:
            raw_text: 客户端发来的原始文本。
            is_admin: 发送者是否具备管理员身份。
            viewer: 发送连接在观众目录中的记录（未加入时为 ``None``）。
            client_name: 客户端自报的昵称。

        Returns:
            记录成功的消息；文本为空或超长时静默拒绝并返回 ``None``。
        """
        text = sanitize_text(raw_text)
        if not text or len(text) > self.max_length:
            logger.debug("丢弃聊天消息 | length=%d", len(text))
            return None

        message = _new_message(
            kind="admin" if is_admin else "user",
            text=text,
            display_name=resolve_author(is_admin, viewer, client_name, self.admin_label),
        )
        self.append(message)
        return message

    def system(self, text: str) -> ChatMessage:
        """生成并记录一条系统消息。"""
        message = _new_message(kind="system", text=text)
        self.append(message)
        return message

    def __len__(self) -> int:
        return len(self._messages)
