"""
tests.test_presence
~~~~~~~~~~~~~~~~~~~

PresenceDirectory 单元测试。
"""
from __future__ import annotations

import random

from app.services.presence import PresenceDirectory, placeholder_name


class TestPresenceDirectory:
    """测试观众登记与离开。"""

    def test_join_and_leave_in_order(self) -> None:
        """V1、V2 加入 → 2 人；V1 离开 → 1 人；V1 重复离开 → 无变化。"""
        directory = PresenceDirectory()

        assert directory.join("c1", "V1") == 1
        assert directory.join("c2", "V2") == 2

        count, removed = directory.leave("c1")
        assert count == 1
        assert removed is not None
        assert removed.display_name == "V1"

        count, removed = directory.leave("c1")
        assert count == 1
        assert removed is None

    def test_placeholder_name(self) -> None:
        directory = PresenceDirectory()
        directory.join("abcdef123456")
        directory.join("zyxwvu987654", "   ")

        assert directory.get("abcdef123456").display_name == "Viewer_abcde"
        assert directory.get("zyxwvu987654").display_name == placeholder_name("zyxwvu987654")

    def test_join_same_connection_overwrites(self) -> None:
        """同一连接重复加入只覆盖名称，不增加人数。"""
        directory = PresenceDirectory()
        directory.join("c1", "Old")

        assert directory.join("c1", "New") == 1
        assert directory.get("c1").display_name == "New"

    def test_leave_unknown_connection(self) -> None:
        directory = PresenceDirectory()

        assert directory.leave("ghost") == (0, None)

    def test_count_matches_model_for_random_sequences(self) -> None:
        """任意 join / leave 序列后，count() 始终等于尚未离开的连接数。"""
        rng = random.Random(2024)
        directory = PresenceDirectory()
        expected: set[str] = set()

        for _ in range(500):
            connection_id = f"c{rng.randint(0, 15)}"
            if rng.random() < 0.55:
                count = directory.join(connection_id, connection_id)
                expected.add(connection_id)
            else:
                count, removed = directory.leave(connection_id)
                assert (removed is not None) == (connection_id in expected)
                expected.discard(connection_id)
            assert count == len(expected) == directory.count()
