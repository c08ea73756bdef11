"""Bot request handling for teleterm.

Public API:
    CommandDispatcher -- Serialized per-request handling
    BotRunner -- Transport polling loop
"""

from teleterm.bot.dispatcher import CommandDispatcher
from teleterm.bot.runner import BotRunner

__all__ = ["CommandDispatcher", "BotRunner"]
