"""
app.services.session_registry
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

直播会话登记处 —— 记录当前是否在直播、推流者 Peer ID、标题和开播时间。

只有 offline / live 两种状态:
  - offline → live: ``start_stream``
  - live → offline: ``stop_stream``
  - live → live:    ``update_title``（只改标题）或再次 ``start_stream``（替换推流者）

登记处只相信显式的结束信号，不检测推流者是否仍然在线。
管理员进程异常退出而未发送结束事件时，会话会一直保持 live，
直到下一次 ``stop_stream`` 或 ``start_stream`` 覆盖它。
"""
from __future__ import annotations

from datetime import datetime, timezone

from app.core.logging import get_logger
from app.schemas.live_interactions import SessionSnapshot

logger = get_logger(__name__)


class SessionRegistry:
    """单个直播会话的权威记录。

    Attributes:
        default_title: 未指定标题或下播后恢复的默认标题。
        publisher_connection_id: 发起当前开播的连接 ID，只在服务端内部使用。
    """

    def __init__(self, default_title: str = "Live Stream") -> None:
        self.default_title = default_title
        self.publisher_connection_id: str | None = None
        self._is_live: bool = False
        self._publisher_peer_id: str | None = None
        self._title: str = default_title
        self._started_at: datetime | None = None

    def start_stream(
        self,
        publisher_peer_id: str,
        title: str | None = None,
        connection_id: str | None = None,
    ) -> SessionSnapshot:
        """开播。无条件覆盖当前会话，重复开播时后到者生效。"""
        if self._is_live:
            logger.info(
                "直播进行中再次开播，覆盖旧会话 | old_peer=%s | new_peer=%s",
                self._publisher_peer_id, publisher_peer_id,
            )
        self._is_live = True
        self._publisher_peer_id = publisher_peer_id
        self._title = title or self.default_title
        self._started_at = datetime.now(timezone.utc)
        self.publisher_connection_id = connection_id
        return self.snapshot()

    def stop_stream(self) -> None:
        """下播，恢复全部默认值。幂等。"""
        self._is_live = False
        self._publisher_peer_id = None
        self._title = self.default_title
        self._started_at = None
        self.publisher_connection_id = None

    def update_title(self, title: str | None) -> bool:
        """修改标题，下播状态下同样允许。

        Returns:
            标题为空时不做修改并返回 ``False``。
        """
        if not title:
            return False
        self._title = title
        return True

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            is_live=self._is_live,
            publisher_peer_id=self._publisher_peer_id,
            title=self._title,
            started_at=self._started_at,
        )

    @property
    def is_live(self) -> bool:
        return self._is_live
