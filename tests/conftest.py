"""
NOT10 测试配置 - pytest配置文件

提供通用的测试fixture：固定种子的随机数、3人状态机以及事件记录器。
所有测试都会自动加载这些配置。
"""

import random

import pytest

from not10.core import EventBus

from tests.helpers import make_machine, make_players


@pytest.fixture
def rng():
    """固定种子的随机数生成器"""
    return random.Random(1234)


@pytest.fixture
def players():
    return make_players(3)


@pytest.fixture
def machine(players):
    """3名玩家、起始座位0的状态机（尚未开始回合）"""
    return make_machine(players)


@pytest.fixture
def started_machine(machine):
    """已经开始第一回合的状态机"""
    assert machine.start_round()
    return machine


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def recorded_events(event_bus):
    """记录事件总线上的全部事件"""
    events = []
    event_bus.subscribe_all(events.append)
    return events


# 测试标记定义
def pytest_configure(config):
    """pytest配置"""
    config.addinivalue_line("markers", "unit: 单元测试")
    config.addinivalue_line("markers", "fast: 快速测试")
    config.addinivalue_line("markers", "integration: 集成测试")
    config.addinivalue_line("markers", "property_test: 基于属性的测试")
