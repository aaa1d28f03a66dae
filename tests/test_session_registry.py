"""
tests.test_session_registry
~~~~~~~~~~~~~~~~~~~~~~~~~~~

SessionRegistry 单元测试：开播 / 下播 / 改标题 与快照。
"""
from __future__ import annotations

from app.services.session_registry import SessionRegistry


class TestSessionRegistry:
    """测试直播会话的两态切换。"""

    def test_initial_snapshot_is_offline(self) -> None:
        snapshot = SessionRegistry().snapshot()

        assert snapshot.is_live is False
        assert snapshot.publisher_peer_id is None
        assert snapshot.title == "Live Stream"
        assert snapshot.started_at is None

    def test_start_then_stop(self) -> None:
        """开播后快照带推流者与开播时间，下播后恢复全部默认值。"""
        registry = SessionRegistry()

        started = registry.start_stream("peerA", "My Show")
        assert started.is_live is True
        assert started.publisher_peer_id == "peerA"
        assert started.title == "My Show"
        assert started.started_at is not None
        assert registry.snapshot() == started

        registry.stop_stream()
        stopped = registry.snapshot()
        assert stopped.is_live is False
        assert stopped.publisher_peer_id is None
        assert stopped.title == "Live Stream"
        assert stopped.started_at is None

    def test_start_without_title_uses_default(self) -> None:
        registry = SessionRegistry(default_title="Canal en vivo")

        assert registry.start_stream("peerA").title == "Canal en vivo"
        assert registry.start_stream("peerA", "").title == "Canal en vivo"

    def test_second_start_replaces_publisher(self) -> None:
        """直播中再次开播不报错，后到者生效。"""
        registry = SessionRegistry()
        registry.start_stream("peerA", "First", connection_id="c1")
        registry.start_stream("peerB", "Second", connection_id="c2")

        snapshot = registry.snapshot()
        assert snapshot.publisher_peer_id == "peerB"
        assert snapshot.title == "Second"
        assert registry.publisher_connection_id == "c2"

    def test_stop_is_idempotent(self) -> None:
        registry = SessionRegistry()
        registry.stop_stream()
        registry.stop_stream()

        assert registry.snapshot().is_live is False

    def test_stop_resets_custom_title(self) -> None:
        registry = SessionRegistry()
        registry.start_stream("peerA", "My Show", connection_id="c1")
        registry.update_title("Renamed")
        registry.stop_stream()

        assert registry.snapshot().title == "Live Stream"
        assert registry.publisher_connection_id is None

    def test_update_title_while_offline(self) -> None:
        """下播状态也可以改标题，且不会改变直播状态。"""
        registry = SessionRegistry()

        assert registry.update_title("Coming soon") is True
        snapshot = registry.snapshot()
        assert snapshot.title == "Coming soon"
        assert snapshot.is_live is False

    def test_update_title_empty_is_noop(self) -> None:
        registry = SessionRegistry()
        registry.start_stream("peerA", "My Show")

        assert registry.update_title("") is False
        assert registry.update_title(None) is False
        assert registry.snapshot().title == "My Show"

    def test_snapshot_is_detached(self) -> None:
        """快照不随后续状态变化而改变。"""
        registry = SessionRegistry()
        before = registry.snapshot()
        registry.start_stream("peerA")

        assert before.is_live is False
