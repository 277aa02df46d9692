"""
NOT10 - a multiplayer card-and-betting game.

Players commit money to a shared pot, then take turns playing cards onto a
running table total. Whoever pushes the total to 10 or more busts and
forfeits their bet; the survivors split the pot in proportion to what they
bet.
"""

__version__ = "0.1.0"
__author__ = "NOT10 Development Team"
