"""
玩家类的单元测试
"""

import pytest

from not10.core import Personality, Player, PlayerStatus, create_player


@pytest.mark.unit
@pytest.mark.fast
class TestPlayer:
    """玩家类测试"""

    def setup_method(self):
        self.player = Player(player_id="p1", name="Alice", seat_index=1, money=100000)

    def test_defaults(self):
        """新玩家默认为活跃、未准备、无手牌"""
        assert self.player.is_active
        assert not self.player.is_spectator
        assert not self.player.is_ready
        assert self.player.hand == []

    @pytest.mark.parametrize("kwargs", [
        {"player_id": ""},
        {"seat_index": 4},
        {"seat_index": -1},
        {"money": -1},
    ])
    def test_invalid_construction(self, kwargs):
        """无效参数在构造时被拒绝"""
        params = dict(player_id="p1", name="Alice", seat_index=0, money=100)
        params.update(kwargs)
        with pytest.raises(ValueError):
            Player(**params)

    def test_bot_requires_personality(self):
        with pytest.raises(ValueError):
            Player(player_id="b", name="BOT", seat_index=0, money=100, is_bot=True)

    def test_hand_operations(self):
        """设置手牌会复制列表，出牌移除一张"""
        cards = [0, 2, 2, 3]
        self.player.set_hand(cards)
        cards.append(1)
        assert self.player.hand == [0, 2, 2, 3]

        self.player.remove_card(2)
        assert self.player.hand == [0, 2, 3]
        assert self.player.has_card(2)
        assert not self.player.has_card(1)

        with pytest.raises(ValueError):
            self.player.remove_card(1)

    def test_make_spectator(self):
        """转为旁观者时清空手牌"""
        self.player.set_hand([1, 2])
        self.player.make_spectator()
        assert self.player.status == PlayerStatus.SPECTATOR
        assert self.player.is_spectator
        assert self.player.hand == []

    def test_debit_and_credit(self):
        self.player.debit(30000)
        assert self.player.money == 70000
        self.player.credit(5000)
        assert self.player.money == 75000

    def test_debit_more_than_balance(self):
        """扣款超过余额被拒绝且余额不变"""
        with pytest.raises(ValueError):
            self.player.debit(100001)
        assert self.player.money == 100000

    def test_negative_amounts(self):
        with pytest.raises(ValueError):
            self.player.debit(-1)
        with pytest.raises(ValueError):
            self.player.credit(-1)

    def test_create_player_helper(self):
        bot = create_player("b1", "BOT Cautious", 2, is_bot=True, personality=Personality.CAUTIOUS)
        assert bot.money == 100000
        assert bot.is_bot
        assert "[BOT]" in str(bot)
