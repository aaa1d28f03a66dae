"""
app.services.presence
~~~~~~~~~~~~~~~~~~~~~

在线观众目录 —— 以连接 ID 为键记录已宣告加入的观众，目录大小即在线人数。

仅建立 WebSocket 连接不算观众，必须收到 ``join-stream`` 事件才会登记。
"""
from __future__ import annotations

from datetime import datetime, timezone

from app.schemas.live_interactions import ViewerRecord


def placeholder_name(connection_id: str) -> str:
    """为未填写昵称的观众生成占位名称。"""
    return f"Viewer_{connection_id[:5]}"


class PresenceDirectory:
    """在线观众目录，``ViewerRecord`` 的唯一所有者。"""

    def __init__(self) -> None:
        self._viewers: dict[str, ViewerRecord] = {}

    def join(self, connection_id: str, display_name: str | None = None) -> int:
        """登记（或覆盖）一个观众。

        Returns:
            登记后的在线人数。
        """
        name = (display_name or "").strip() or placeholder_name(connection_id)
        self._viewers[connection_id] = ViewerRecord(
            display_name=name,
            joined_at=datetime.now(timezone.utc),
        )
        return len(self._viewers)

    def leave(self, connection_id: str) -> tuple[int, ViewerRecord | None]:
        """移除观众。从未登记过的连接直接返回 ``None``，用于吸收重复的断开事件。"""
        removed = self._viewers.pop(connection_id, None)
        return len(self._viewers), removed

    def get(self, connection_id: str) -> ViewerRecord | None:
        return self._viewers.get(connection_id)

    def count(self) -> int:
        return len(self._viewers)
