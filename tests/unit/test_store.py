"""
内存同步存储的单元测试
"""

import pytest

from not10.core import (
    DuplicateRecordError, HandAccessError, RecordNotFoundError, StaleRecordError, StoreError,
)
from not10.store import (
    ACTIONS, HANDS, PLAYERS, ROOMS, ROUND_STATE, ChangeType, InMemoryStore, hand_key, merge_fields,
)


@pytest.mark.unit
@pytest.mark.fast
class TestMergeFields:
    """字段合并测试"""

    def test_nested_dicts_merge_by_key(self):
        target = {"bets": {"p0": 100, "p1": 0}, "pot": 100}
        merge_fields(target, {"bets": {"p1": 200}, "pot": 300})
        assert target == {"bets": {"p0": 100, "p1": 200}, "pot": 300}

    def test_non_dict_values_are_replaced(self):
        target = {"deck": [1, 2, 3], "bets": {"p0": 1}}
        merge_fields(target, {"deck": [1], "bets": None})
        assert target == {"deck": [1], "bets": None}

    def test_patch_is_copied(self):
        patch = {"deck": [1, 2]}
        target = merge_fields({}, patch)
        patch["deck"].append(3)
        assert target["deck"] == [1, 2]


@pytest.mark.unit
class TestInMemoryStore:
    """存储读写测试"""

    def setup_method(self):
        self.store = InMemoryStore()
        self.store.insert(ROOMS, "ABCD", {"code": "ABCD", "pot": 0})

    def test_insert_and_get(self):
        assert self.store.get(ROOMS, "ABCD") == {"code": "ABCD", "pot": 0}
        assert self.store.get_version(ROOMS, "ABCD") == 1

    def test_get_returns_copy(self):
        data = self.store.get(ROOMS, "ABCD")
        data["pot"] = 999
        assert self.store.get(ROOMS, "ABCD")["pot"] == 0

    def test_duplicate_insert(self):
        with pytest.raises(DuplicateRecordError):
            self.store.insert(ROOMS, "ABCD", {})

    def test_missing_record(self):
        with pytest.raises(RecordNotFoundError):
            self.store.get(ROOMS, "ZZZZ")
        assert self.store.find(ROOMS, "ZZZZ") is None
        with pytest.raises(RecordNotFoundError):
            self.store.update(ROOMS, "ZZZZ", {"pot": 1})

    def test_unknown_table(self):
        with pytest.raises(StoreError):
            self.store.get("nope", "ABCD")

    def test_update_increments_version(self):
        assert self.store.update(ROOMS, "ABCD", {"pot": 100}) == 2
        assert self.store.get(ROOMS, "ABCD")["pot"] == 100

    def test_stale_update_is_rejected(self):
        """期望版本不一致时拒绝写入且数据不变"""
        self.store.update(ROOMS, "ABCD", {"pot": 100}, expected_version=1)
        with pytest.raises(StaleRecordError):
            self.store.update(ROOMS, "ABCD", {"pot": 200}, expected_version=1)
        assert self.store.get(ROOMS, "ABCD")["pot"] == 100
        assert self.store.get_version(ROOMS, "ABCD") == 2

    def test_disjoint_concurrent_patches_both_survive(self):
        """对同一记录不相交字段的更新都会保留"""
        self.store.insert(ROUND_STATE, "ABCD", {"room_code": "ABCD", "bets": {"p0": 0, "p1": 0}})
        self.store.update(ROUND_STATE, "ABCD", {"bets": {"p0": 100}})
        self.store.update(ROUND_STATE, "ABCD", {"bets": {"p1": 200}})
        assert self.store.get(ROUND_STATE, "ABCD")["bets"] == {"p0": 100, "p1": 200}

    def test_replace_drops_old_keys(self):
        self.store.insert(ROUND_STATE, "ABCD", {"room_code": "ABCD", "bets": {"p0": 100}})
        assert self.store.replace(ROUND_STATE, "ABCD", {"room_code": "ABCD", "bets": {}}) == 2
        assert self.store.get(ROUND_STATE, "ABCD")["bets"] == {}

    def test_replace_inserts_missing_record(self):
        assert self.store.replace(ROUND_STATE, "WXYZ", {"room_code": "WXYZ"}) == 1

    def test_delete(self):
        assert self.store.delete(ROOMS, "ABCD") is True
        assert self.store.delete(ROOMS, "ABCD") is False

    def test_query_by_room_and_fields(self):
        self.store.insert(PLAYERS, "p0", {"room_code": "ABCD", "is_bot": False})
        self.store.insert(PLAYERS, "p1", {"room_code": "ABCD", "is_bot": True})
        self.store.insert(PLAYERS, "q0", {"room_code": "WXYZ", "is_bot": True})
        assert len(self.store.query(PLAYERS, room_code="ABCD")) == 2
        bots = self.store.query(PLAYERS, room_code="ABCD", is_bot=True)
        assert [r["room_code"] for r in bots] == ["ABCD"]
        assert len(self.store.query(PLAYERS, is_bot=True)) == 2

    def test_delete_room(self):
        self.store.insert(PLAYERS, "p0", {"room_code": "ABCD"})
        self.store.insert(PLAYERS, "q0", {"room_code": "WXYZ"})
        assert self.store.delete_room("ABCD") == 2
        assert self.store.find(PLAYERS, "q0") is not None


@pytest.mark.unit
class TestActionLog:
    """行动日志测试"""

    def test_actions_are_append_only_and_ordered(self):
        store = InMemoryStore()
        first = store.append_action("ABCD", {"kind": "action", "round_no": 1})
        second = store.append_action("ABCD", {"kind": "log", "round_no": 1})
        store.append_action("WXYZ", {"kind": "action", "round_no": 1})
        assert second > first

        actions = store.get_actions("ABCD")
        assert [a["id"] for a in actions] == [first, second]
        assert all(a["room_code"] == "ABCD" for a in actions)
        assert [a["kind"] for a in store.get_actions("ABCD", kind="log")] == ["log"]


@pytest.mark.unit
class TestHandAccess:
    """手牌访问策略测试"""

    def setup_method(self):
        self.store = InMemoryStore()
        self.store.insert(PLAYERS, "human", {"room_code": "ABCD", "is_bot": False})
        self.store.insert(PLAYERS, "bot", {"room_code": "ABCD", "is_bot": True})
        self.store.write_hand("ABCD", "human", [0, 1])
        self.store.write_hand("ABCD", "bot", [2, 3])

    def test_owner_can_read(self):
        assert self.store.read_hand("ABCD", "human", "human") == [0, 1]

    def test_other_player_cannot_read(self):
        with pytest.raises(HandAccessError):
            self.store.read_hand("ABCD", "human", "bot")

    def test_host_reads_bot_but_not_human(self):
        """房主只能读取机器人的手牌"""
        assert self.store.read_hand("ABCD", "bot", "host", viewer_is_host=True) == [2, 3]
        with pytest.raises(HandAccessError):
            self.store.read_hand("ABCD", "human", "host", viewer_is_host=True)

    def test_rewrite_hand_updates_record(self):
        self.store.write_hand("ABCD", "human", [1])
        assert self.store.read_hand("ABCD", "human", "human") == [1]
        assert self.store.get_version(HANDS, hand_key("ABCD", "human")) == 2


@pytest.mark.unit
class TestSubscriptions:
    """变更订阅测试"""

    def setup_method(self):
        self.store = InMemoryStore()
        self.changes = []

    def test_changes_filtered_by_room(self):
        self.store.subscribe("ABCD", self.changes.append)
        self.store.insert(ROOMS, "ABCD", {"code": "ABCD"})
        self.store.insert(ROOMS, "WXYZ", {"code": "WXYZ"})
        self.store.update(ROOMS, "ABCD", {"pot": 5})
        self.store.delete(ROOMS, "ABCD")

        assert [c.change_type for c in self.changes] == [ChangeType.INSERT, ChangeType.UPDATE, ChangeType.DELETE]
        assert self.changes[1].patch == {"pot": 5}
        assert self.changes[1].version == 2

    def test_changes_filtered_by_table(self):
        self.store.subscribe("ABCD", self.changes.append, tables=[ACTIONS])
        self.store.insert(ROOMS, "ABCD", {"code": "ABCD"})
        self.store.append_action("ABCD", {"kind": "action"})
        assert [c.table for c in self.changes] == [ACTIONS]

    def test_unsubscribe(self):
        subscription_id = self.store.subscribe("ABCD", self.changes.append)
        assert self.store.unsubscribe(subscription_id)
        assert not self.store.unsubscribe(subscription_id)
        self.store.insert(ROOMS, "ABCD", {"code": "ABCD"})
        assert self.changes == []

    def test_failing_callback_does_not_break_writes(self):
        """回调异常被记录，写入和其他订阅者不受影响"""
        def broken(change):
            raise RuntimeError("boom")

        self.store.subscribe("ABCD", broken)
        self.store.subscribe("ABCD", self.changes.append)
        assert self.store.insert(ROOMS, "ABCD", {"code": "ABCD"}) == 1
        assert len(self.changes) == 1
