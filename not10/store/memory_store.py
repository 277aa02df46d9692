"""
内存版同步存储.

以表/主键组织的版本化记录，支持按字段合并更新、按房间过滤的变更订阅
以及只追加的行动日志. 所有写操作在同一把锁内完成，订阅回调在锁外执行.
"""

import copy
import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..core.exceptions import (
    DuplicateRecordError, HandAccessError, RecordNotFoundError, StaleRecordError, StoreError,
)

ROOMS = "rooms"
PLAYERS = "players"
ROUND_STATE = "round_state"
HANDS = "hands"
ACTIONS = "actions"

TABLES = (ROOMS, PLAYERS, ROUND_STATE, HANDS)


class ChangeType(Enum):
    """记录变更类型"""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class Record:
    """一条版本化记录"""

    key: str
    data: Dict[str, Any]
    version: int = 1
    updated_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Change:
    """
    变更通知.

    Attributes:
        table: 表名
        change_type: 变更类型
        key: 记录主键
        room_code: 记录所属房间
        patch: 本次写入的字段（删除时为空）
        version: 变更后的版本号
    """

    table: str
    change_type: ChangeType
    key: str
    room_code: Optional[str]
    patch: Dict[str, Any]
    version: int


ChangeListener = Callable[[Change], None]


@dataclass
class _Subscription:
    room_code: str
    callback: ChangeListener
    tables: Optional[frozenset] = None


def merge_fields(target: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    """
    把patch按字段合并进target（原地修改）.

    两边都是dict的字段递归合并，其余字段直接替换，因此对同一记录中
    不相交字段或不相交键的并发更新都会保留.
    """
    for name, value in patch.items():
        current = target.get(name)
        if isinstance(current, dict) and isinstance(value, dict):
            merge_fields(current, value)
        else:
            target[name] = copy.deepcopy(value)
    return target


def hand_key(room_code: str, player_id: str) -> str:
    """手牌记录的主键"""
    return f"{room_code}:{player_id}"


class InMemoryStore:
    """
    内存键值存储.

    模拟外部同步服务：get / insert / update / delete / query / subscribe.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._tables: Dict[str, Dict[str, Record]] = {table: {} for table in TABLES}
        self._actions: List[Dict[str, Any]] = []
        self._lock = threading.RLock()
        self._subscriptions: Dict[int, _Subscription] = {}
        self._subscription_ids = itertools.count(1)
        self._action_ids = itertools.count(1)
        self._logger = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # 基本读写
    # ------------------------------------------------------------------

    def insert(self, table: str, key: str, data: Dict[str, Any]) -> int:
        """
        插入新记录.

        Returns:
            int: 新记录的版本号（1）

        Raises:
            DuplicateRecordError: 主键已存在
        """
        with self._lock:
            rows = self._table(table)
            if key in rows:
                raise DuplicateRecordError(f"{table}中已存在记录{key}")
            record = Record(key=key, data=copy.deepcopy(data))
            rows[key] = record
            change = Change(table, ChangeType.INSERT, key, self._room_of(table, key, record.data),
                            copy.deepcopy(data), record.version)
        self._notify(change)
        return change.version

    def get(self, table: str, key: str) -> Dict[str, Any]:
        """
        读取记录数据的副本.

        Raises:
            RecordNotFoundError: 记录不存在
        """
        with self._lock:
            return copy.deepcopy(self._record(table, key).data)

    def find(self, table: str, key: str) -> Optional[Dict[str, Any]]:
        """读取记录，不存在时返回None"""
        with self._lock:
            record = self._table(table).get(key)
            return copy.deepcopy(record.data) if record else None

    def get_version(self, table: str, key: str) -> int:
        with self._lock:
            return self._record(table, key).version

    def update(self, table: str, key: str, patch: Dict[str, Any],
               expected_version: Optional[int] = None) -> int:
        """
        按字段合并更新记录.

        Args:
            table: 表名
            key: 主键
            patch: 要写入的字段，嵌套dict按键合并
            expected_version: 期望的当前版本，不一致时拒绝写入

        Returns:
            int: 更新后的版本号

        Raises:
            RecordNotFoundError: 记录不存在
            StaleRecordError: 版本不一致
        """
        with self._lock:
            record = self._record(table, key)
            if expected_version is not None and record.version != expected_version:
                raise StaleRecordError(
                    f"{table}/{key} 版本已变为{record.version}，期望{expected_version}"
                )
            merge_fields(record.data, patch)
            record.version += 1
            record.updated_at = time.time()
            change = Change(table, ChangeType.UPDATE, key, self._room_of(table, key, record.data),
                            copy.deepcopy(patch), record.version)
        self._notify(change)
        return change.version

    def replace(self, table: str, key: str, data: Dict[str, Any]) -> int:
        """
        整条覆盖记录（不存在时插入）.

        只用于每回合重置回合状态这类需要删除旧键的场景.
        """
        with self._lock:
            rows = self._table(table)
            record = rows.get(key)
            if record is None:
                record = rows[key] = Record(key=key, data={}, version=0)
            record.data = copy.deepcopy(data)
            record.version += 1
            record.updated_at = time.time()
            change_type = ChangeType.INSERT if record.version == 1 else ChangeType.UPDATE
            change = Change(table, change_type, key, self._room_of(table, key, record.data),
                            copy.deepcopy(data), record.version)
        self._notify(change)
        return change.version

    def delete(self, table: str, key: str) -> bool:
        """删除记录，记录不存在时返回False"""
        with self._lock:
            record = self._table(table).pop(key, None)
            if record is None:
                return False
            change = Change(table, ChangeType.DELETE, key, self._room_of(table, key, record.data),
                            {}, record.version + 1)
        self._notify(change)
        return True

    def query(self, table: str, room_code: Optional[str] = None, **filters) -> List[Dict[str, Any]]:
        """
        按房间和字段值查询记录.

        Args:
            table: 表名
            room_code: 只返回该房间的记录
            **filters: 字段名=期望值

        Returns:
            List[Dict]: 匹配记录数据的副本
        """
        with self._lock:
            results = []
            for key, record in self._table(table).items():
                if room_code is not None and self._room_of(table, key, record.data) != room_code:
                    continue
                if any(record.data.get(name) != value for name, value in filters.items()):
                    continue
                results.append(copy.deepcopy(record.data))
            return results

    def delete_room(self, room_code: str) -> int:
        """删除房间的全部记录，返回删除条数"""
        with self._lock:
            doomed = [
                (table, key)
                for table in TABLES
                for key, record in self._table(table).items()
                if self._room_of(table, key, record.data) == room_code
            ]
        for table, key in doomed:
            self.delete(table, key)
        return len(doomed)

    # ------------------------------------------------------------------
    # 行动日志
    # ------------------------------------------------------------------

    def append_action(self, room_code: str, action: Dict[str, Any]) -> int:
        """
        追加一条行动记录.

        Returns:
            int: 行动序号
        """
        with self._lock:
            action_id = next(self._action_ids)
            entry = dict(copy.deepcopy(action), id=action_id, room_code=room_code)
            entry.setdefault("created_at", time.time())
            self._actions.append(entry)
            change = Change(ACTIONS, ChangeType.INSERT, str(action_id), room_code,
                            copy.deepcopy(entry), 1)
        self._notify(change)
        return action_id

    def get_actions(self, room_code: str, **filters) -> List[Dict[str, Any]]:
        """按追加顺序返回房间的行动记录"""
        with self._lock:
            return [
                copy.deepcopy(entry) for entry in self._actions
                if entry["room_code"] == room_code
                and all(entry.get(name) == value for name, value in filters.items())
            ]

    # ------------------------------------------------------------------
    # 手牌访问策略
    # ------------------------------------------------------------------

    def write_hand(self, room_code: str, player_id: str, cards: Iterable[int]) -> int:
        """写入（或覆盖）玩家手牌"""
        key = hand_key(room_code, player_id)
        data = {"room_code": room_code, "player_id": player_id, "cards": list(cards)}
        with self._lock:
            exists = key in self._table(HANDS)
        if exists:
            return self.update(HANDS, key, {"cards": data["cards"]})
        return self.insert(HANDS, key, data)

    def can_read_hand(self, room_code: str, player_id: str, viewer_id: str,
                      viewer_is_host: bool = False) -> bool:
        """只有持有者本人，或读取机器人手牌的房主有权读取"""
        if viewer_id == player_id:
            return True
        if not viewer_is_host:
            return False
        owner = self.find(PLAYERS, player_id)
        return bool(owner and owner.get("room_code") == room_code and owner.get("is_bot"))

    def read_hand(self, room_code: str, player_id: str, viewer_id: str,
                  viewer_is_host: bool = False) -> List[int]:
        """
        读取手牌.

        Raises:
            HandAccessError: 无权读取
        """
        if not self.can_read_hand(room_code, player_id, viewer_id, viewer_is_host):
            raise HandAccessError(f"{viewer_id}无权查看{player_id}的手牌")
        data = self.find(HANDS, hand_key(room_code, player_id))
        return list(data["cards"]) if data else []

    # ------------------------------------------------------------------
    # 订阅
    # ------------------------------------------------------------------

    def subscribe(self, room_code: str, callback: ChangeListener,
                  tables: Optional[Iterable[str]] = None) -> int:
        """
        订阅某个房间的变更.

        Args:
            room_code: 房间码
            callback: 变更回调
            tables: 只关心的表，None表示全部

        Returns:
            int: 订阅ID，用于取消订阅
        """
        with self._lock:
            subscription_id = next(self._subscription_ids)
            self._subscriptions[subscription_id] = _Subscription(
                room_code=room_code,
                callback=callback,
                tables=frozenset(tables) if tables is not None else None,
            )
        self._logger.debug(f"订阅房间{room_code}的变更: {subscription_id}")
        return subscription_id

    def unsubscribe(self, subscription_id: int) -> bool:
        with self._lock:
            return self._subscriptions.pop(subscription_id, None) is not None

    # ------------------------------------------------------------------
    # 内部实现
    # ------------------------------------------------------------------

    def _table(self, table: str) -> Dict[str, Record]:
        try:
            return self._tables[table]
        except KeyError:
            raise StoreError(f"未知的表: {table}") from None

    def _record(self, table: str, key: str) -> Record:
        record = self._table(table).get(key)
        if record is None:
            raise RecordNotFoundError(f"{table}中不存在记录{key}")
        return record

    @staticmethod
    def _room_of(table: str, key: str, data: Dict[str, Any]) -> Optional[str]:
        if table == ROOMS:
            return key
        if table == ROUND_STATE:
            return data.get("room_code", key)
        return data.get("room_code")

    def _notify(self, change: Change) -> None:
        with self._lock:
            listeners = [
                s.callback for s in self._subscriptions.values()
                if s.room_code == change.room_code
                and (s.tables is None or change.table in s.tables)
            ]
        for callback in listeners:
            try:
                callback(change)
            except Exception as e:
                self._logger.error(f"变更订阅回调出错: {e}")
