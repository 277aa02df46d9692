"""
大厅工具函数.

房间码生成、玩家名称校验、座位分配以及用机器人填满空座位.
"""

import random
import re
import uuid
from typing import Iterable, List, Optional

from ..ai import AI_PLAYER_NAMES, SEAT_PERSONALITIES
from ..core import DEFAULT_RULES, GameRules, Personality, Player

# 去掉了容易混淆的 I、O、0、1
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6
MAX_NAME_LENGTH = 20

_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\s_-]+$")


def generate_room_code(rng: Optional[random.Random] = None) -> str:
    """生成6位房间码"""
    rng = rng or random.SystemRandom()
    return "".join(rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


def is_valid_room_code(code: str) -> bool:
    return (
        isinstance(code, str)
        and len(code) == ROOM_CODE_LENGTH
        and all(ch in ROOM_CODE_ALPHABET for ch in code)
    )


def normalize_room_code(code: str) -> str:
    """去掉空白并转为大写"""
    return (code or "").strip().upper()


def validate_player_name(name: str) -> str:
    """
    校验玩家名称.

    Args:
        name: 原始输入

    Returns:
        str: 去掉首尾空白后的名称

    Raises:
        ValueError: 名称为空、过长或包含非法字符
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("名称不能为空")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValueError(f"名称不能超过{MAX_NAME_LENGTH}个字符")
    if not _NAME_PATTERN.match(cleaned):
        raise ValueError("名称只能包含字母、数字、空格、下划线和连字符")
    return cleaned


def new_player_id() -> str:
    return uuid.uuid4().hex


def bot_player_id(room_code: str, seat_index: int) -> str:
    return f"bot_{room_code}_{seat_index}"


def find_available_seat(players: Iterable[Player], rules: GameRules = DEFAULT_RULES) -> Optional[int]:
    """返回编号最小的空座位，满员时返回None"""
    taken = {p.seat_index for p in players}
    return next((seat for seat in range(rules.max_players) if seat not in taken), None)


def make_bot(room_code: str, seat_index: int, personality: Personality,
             money: int = DEFAULT_RULES.starting_money, multiplayer: bool = True) -> Player:
    """
    创建机器人玩家.

    多人房间里机器人名为"BOT 性格"，单机对战使用固定的角色名.
    """
    name = f"BOT {personality.display_name}" if multiplayer else AI_PLAYER_NAMES[personality]
    return Player(
        player_id=bot_player_id(room_code, seat_index),
        name=name,
        seat_index=seat_index,
        money=money,
        is_ready=True,
        is_bot=True,
        personality=personality,
    )


def fill_with_bots(room_code: str, players: Iterable[Player],
                   rules: GameRules = DEFAULT_RULES, money: Optional[int] = None) -> List[Player]:
    """
    用机器人填满空座位.

    性格按 谨慎 -> 均衡 -> 激进 的顺序循环分配.

    Returns:
        List[Player]: 新创建的机器人
    """
    seated = list(players)
    money = rules.starting_money if money is None else money
    bots = []
    for seat in range(rules.max_players):
        if any(p.seat_index == seat for p in seated):
            continue
        personality = SEAT_PERSONALITIES[len(bots) % len(SEAT_PERSONALITIES)]
        bot = make_bot(room_code, seat, personality, money)
        bots.append(bot)
        seated.append(bot)
    return bots
