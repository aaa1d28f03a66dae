"""
app.schemas.live_interactions
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

直播间相关的 Pydantic 模型：会话快照、观众记录、聊天消息，
以及 WebSocket 上下行事件的协议定义。

每一帧都是 ``{"event": <事件名>, "data": <负载>}`` 形式的 JSON。
上行事件是按 ``event`` 字段区分的封闭联合类型，缺字段或未知事件一律校验失败。
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_serializer

ChatKind = Literal["system", "user", "admin"]

OutboundEventName = Literal[
    "stream-status",
    "chat-history",
    "stream-started",
    "stream-ended",
    "title-updated",
    "chat-message",
    "viewer-count",
]


# ── 领域值对象 ────────────────────────────────────────────────────────

class SessionSnapshot(BaseModel):
    """直播会话的只读快照。"""

    model_config = ConfigDict(frozen=True)

    is_live: bool = Field(..., description="是否正在直播")
    publisher_peer_id: str | None = Field(default=None, description="推流者的 Peer ID")
    title: str = Field(..., description="直播标题")
    started_at: datetime | None = Field(default=None, description="开播时间")


class ViewerRecord(BaseModel):
    """在线观众记录，仅由 PresenceDirectory 创建和销毁。"""

    model_config = ConfigDict(frozen=True)

    display_name: str = Field(..., description="显示名称")
    joined_at: datetime = Field(..., description="加入时间")


class ChatMessage(BaseModel):
    """一条不可变的聊天消息。系统消息没有 ``display_name``。"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="消息唯一标识")
    kind: ChatKind = Field(..., description="消息类型：system / user / admin")
    display_name: str | None = Field(default=None, description="发送者名称")
    text: str = Field(..., description="已转义的消息文本")
    timestamp: datetime = Field(..., description="创建时间")

    @model_serializer(mode="wrap")
    def _omit_missing_author(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        if data.get("display_name") is None:
            data.pop("display_name", None)
        return data


# ── 上行事件负载 ──────────────────────────────────────────────────────

class JoinStreamData(BaseModel):
    display_name: str | None = Field(default=None, description="观众自报的昵称")


class ChatMessageData(BaseModel):
    text: str = Field(..., description="原始消息文本")
    is_admin: bool = Field(default=False, description="是否以管理员身份发言（仅管理员连接生效）")
    display_name: str | None = Field(default=None, description="客户端自报的昵称")


class StreamStartedData(BaseModel):
    publisher_peer_id: str = Field(..., min_length=1, description="推流者在中继服务上的 Peer ID")
    title: str | None = Field(default=None, description="直播标题")


class StreamEndedData(BaseModel):
    pass


class TitleData(BaseModel):
    title: str = Field(..., description="直播标题")


# ── 上行事件（封闭联合） ──────────────────────────────────────────────

class JoinStreamEvent(BaseModel):
    event: Literal["join-stream"]
    data: JoinStreamData = Field(default_factory=JoinStreamData)


class ChatMessageEvent(BaseModel):
    event: Literal["chat-message"]
    data: ChatMessageData


class StreamStartedEvent(BaseModel):
    event: Literal["stream-started"]
    data: StreamStartedData


class StreamEndedEvent(BaseModel):
    event: Literal["stream-ended"]
    data: StreamEndedData = Field(default_factory=StreamEndedData)


class UpdateTitleEvent(BaseModel):
    event: Literal["update-title"]
    data: TitleData


InboundEvent = Annotated[
    Union[
        JoinStreamEvent,
        ChatMessageEvent,
        StreamStartedEvent,
        StreamEndedEvent,
        UpdateTitleEvent,
    ],
    Field(discriminator="event"),
]

inbound_event_adapter: TypeAdapter[InboundEvent] = TypeAdapter(InboundEvent)


def parse_inbound_event(raw: str | bytes) -> InboundEvent:
    """解析一帧上行 JSON。

    Raises:
        pydantic.ValidationError: JSON 非法、事件未知或缺少必填字段。
    """
    return inbound_event_adapter.validate_json(raw)


# ── 下行事件负载 ──────────────────────────────────────────────────────

class StreamStatusData(BaseModel):
    is_live: bool
    publisher_peer_id: str | None
    title: str

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> StreamStatusData:
        return cls(
            is_live=snapshot.is_live,
            publisher_peer_id=snapshot.publisher_peer_id,
            title=snapshot.title,
        )


class StreamAnnouncementData(BaseModel):
    publisher_peer_id: str
    title: str


def _to_wire(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, (list, tuple)):
        return [_to_wire(item) for item in data]
    return data


def encode_event(event: OutboundEventName, data: Any = None) -> str:
    """把下行事件编码为一帧 JSON 文本。"""
    payload = {"event": event, "data": _to_wire(data if data is not None else {})}
    return json.dumps(payload, ensure_ascii=False)


# ── HTTP 响应数据 ─────────────────────────────────────────────────────

class StreamStatusResponseData(BaseModel):
    """``GET /api/stream-status`` 的响应数据，供尚未建立 WebSocket 的客户端查询。"""

    is_live: bool = Field(..., description="是否正在直播")
    publisher_peer_id: str | None = Field(..., description="推流者的 Peer ID")
    started_at: datetime | None = Field(..., description="开播时间")
    title: str = Field(..., description="直播标题")
    viewer_count: int = Field(..., description="当前在线观众数")
