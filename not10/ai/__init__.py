"""
AI players for NOT10.

Exports the strategy protocol, the personality strategy table and the
personality-driven policy engine.
"""

from .base import AIStrategy, BetDecision
from .personality import (
    AI_PLAYER_NAMES, PERSONALITY_DESCRIPTIONS, SEAT_PERSONALITIES, STRATEGY_TABLE,
    CardStyle, PersonalityProfile, get_profile,
)
from .policy import PersonalityAI, evaluate_hand_strength, partition_cards

__all__ = [
    'AIStrategy', 'BetDecision',
    'AI_PLAYER_NAMES', 'PERSONALITY_DESCRIPTIONS', 'SEAT_PERSONALITIES', 'STRATEGY_TABLE',
    'CardStyle', 'PersonalityProfile', 'get_profile',
    'PersonalityAI', 'evaluate_hand_strength', 'partition_cards',
]
