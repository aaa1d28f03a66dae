"""
tests.test_room_broadcaster
~~~~~~~~~~~~~~~~~~~~~~~~~~~

RoomBroadcaster / ClientConnection 单元测试：投递隔离与写协程。
"""
from __future__ import annotations

import asyncio
import contextlib
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import WebSocket

from app.services.room_broadcaster import ClientConnection, RoomBroadcaster
from conftest import make_connection


class TestBroadcast:
    """测试广播的逐连接失败隔离。"""

    def test_full_queue_does_not_block_others(self) -> None:
        broadcaster = RoomBroadcaster()
        slow = make_connection(connection_id="slow", queue_size=1)
        fast = make_connection(connection_id="fast")
        broadcaster.register(slow)
        broadcaster.register(fast)

        assert broadcaster.broadcast("one") == 2
        assert broadcaster.broadcast("two") == 1  # slow 的队列已满

        assert slow.pending == 1
        assert fast.pending == 2

    def test_dead_connection_is_skipped(self) -> None:
        broadcaster = RoomBroadcaster()
        dead = make_connection(connection_id="dead")
        dead.alive = False
        alive = make_connection(connection_id="alive")
        broadcaster.register(dead)
        broadcaster.register(alive)

        assert broadcaster.broadcast("hello") == 1
        assert dead.pending == 0

    def test_send_to_unknown_connection(self) -> None:
        assert RoomBroadcaster().send_to("ghost", "hello") is False

    def test_disconnect_removes_connection(self) -> None:
        broadcaster = RoomBroadcaster()
        connection = make_connection(connection_id="c1")
        broadcaster.register(connection)
        broadcaster.disconnect("c1")
        broadcaster.disconnect("c1")

        assert broadcaster.online_count == 0
        assert broadcaster.broadcast("hello") == 0


class TestWriter:
    """测试连接专属写协程。"""

    @pytest.mark.asyncio
    async def test_writer_sends_in_order(self) -> None:
        connection = make_connection()
        for frame in ("a", "b", "c"):
            connection.deliver(frame)

        writer = asyncio.create_task(connection.run_writer())
        await asyncio.sleep(0.01)
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer

        sent = [call.args[0] for call in connection.websocket.send_text.call_args_list]
        assert sent == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_send_failure_marks_connection_dead(self) -> None:
        connection = make_connection()
        connection.websocket.send_text = AsyncMock(side_effect=RuntimeError("socket gone"))
        connection.deliver("a")

        await asyncio.wait_for(connection.run_writer(), timeout=1)

        assert connection.alive is False
        assert connection.deliver("b") is False

    @pytest.mark.asyncio
    async def test_connect_accepts_and_registers(self) -> None:
        broadcaster = RoomBroadcaster()
        websocket = MagicMock(spec=WebSocket)
        websocket.accept = AsyncMock()

        connection = await broadcaster.connect(websocket)

        websocket.accept.assert_awaited_once()
        assert isinstance(connection, ClientConnection)
        assert broadcaster.active_connections[connection.connection_id] is connection
        assert connection.is_admin is False
