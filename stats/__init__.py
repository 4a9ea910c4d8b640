"""
IRC Statistics
==============
In-memory aggregation of IRC activity per network, channel and user, with
URL/word frequency tables and gzip snapshot persistence.

Usage:
    from stats import Stats, MsgKind

    stats = Stats.load("data/stats.db")
    with stats.write_locked():
        stats.add_message(MsgKind.PRIVMSG, "libera", "#python", "nick!user@host", now, "hello")
        stats.save("data/stats.db")
"""

__version__ = "1.0.0"

from stats.stats_entities import Channel, ChannelUser, Message, MsgKind, Network, User
from stats.stats_manager import StatsManager
from stats.stats_snapshot import SnapshotError
from stats.stats_store import Stats, nick_from_hostmask
from stats.stats_tokens import TokenCounter, TopToken, new_url_counter, new_word_counter

__all__ = [
    'Stats',
    'StatsManager',
    'SnapshotError',
    'MsgKind',
    'Message',
    'Network',
    'Channel',
    'User',
    'ChannelUser',
    'TokenCounter',
    'TopToken',
    'new_url_counter',
    'new_word_counter',
    'nick_from_hostmask',
]
