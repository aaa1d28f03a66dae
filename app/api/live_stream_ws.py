"""
app.api.live_stream_ws
~~~~~~~~~~~~~~~~~~~~~~

WebSocket 实时交互接口 —— 单直播间模式。

提供 ``/ws`` 端点。观众直接连接；管理员连接时通过查询参数 ``token``
携带登录得到的 Token，校验通过后该连接才具备开播 / 下播 / 改标题的能力。
Token 无效时直接以 1008 关闭连接。

注意：Token 位于 URL 查询串中，会出现在 uvicorn 访问日志里。
``python -m app.main`` 在 prod 环境下不输出访问日志；用 uvicorn 命令行部署时应加
``--no-access-log``，或在反向代理层过滤查询串。
Token 本身按 ``JWT_EXPIRE_HOURS`` 过期。

消息协议（JSON，文本帧或二进制帧均可）:
  - 上行: ``{"event": "join-stream" | "chat-message" | "stream-started"
    | "stream-ended" | "update-title", "data": {...}}``
  - 下行: ``{"event": "stream-status" | "chat-history" | "stream-started"
    | "stream-ended" | "title-updated" | "chat-message" | "viewer-count", "data": ...}``
"""
import asyncio
import contextlib

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from app.core.exceptions import AuthError
from app.core.logging import get_logger, request_id_ctx_var
from app.schemas.auth import Identity
from app.services.live_hub import LiveHub

logger = get_logger(__name__)

router: APIRouter = APIRouter()


@router.websocket("/ws")
async def websocket_live_endpoint(websocket: WebSocket, token: str | None = None) -> None:
    """WebSocket 直播间端点。

    接收循环只负责读帧并交给 ``LiveHub`` 同步处理；
    发送由连接专属的写协程完成，慢连接不会阻塞其他观众。

    Args:
        websocket: FastAPI WebSocket 连接对象。
        token: 可选的管理员 Token。
    """
    hub: LiveHub = websocket.app.state.live_hub

    identity: Identity | None = None
    if token:
        try:
            identity = hub.credentials.authenticate(token)
        except AuthError as e:
            logger.warning("WebSocket 管理员 Token 校验失败，拒绝连接: %s", e.message)
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

    connection = await hub.broadcaster.connect(websocket, identity=identity)
    ctx_token = request_id_ctx_var.set(f"ws-{connection.connection_id[:8]}")
    logger.info(
        "连接建立 | conn=%s | admin=%s | 连接数: %d",
        connection.connection_id,
        identity.username if identity else "-",
        hub.broadcaster.online_count,
    )

    writer = asyncio.create_task(connection.run_writer())
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))
            # 文本帧与二进制帧都交给中枢解析，非法内容在解析时丢弃
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            hub.handle_frame(connection, raw)
    except WebSocketDisconnect:
        pass  # 正常断开
    except Exception as e:
        logger.error("WebSocket 接收异常: %s", e, exc_info=True)
    finally:
        hub.on_disconnect(connection)
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
        logger.info(
            "连接断开 | conn=%s | 连接数: %d | 观众: %d",
            connection.connection_id, hub.broadcaster.online_count, hub.presence.count(),
        )
        request_id_ctx_var.reset(ctx_token)
