"""
IRC Statistics - Entities
=========================
Network -> Channel / User -> ChannelUser aggregates and the immutable
Message record they observe.

Only ids of messages are kept by the aggregates. The name indexes on
Network (channel name -> Channel, nick -> User) are derived state: they
are dropped when pickled and rebuilt from the Stats tables on load.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from stats.stats_counters import TextCounters
from stats.stats_tokens import TokenCounter, new_url_counter, new_word_counter


class MsgKind(str, Enum):
    PRIVMSG = "PRIVMSG"
    ACTION = "ACTION"
    NOTICE = "NOTICE"
    JOIN = "JOIN"
    PART = "PART"
    QUIT = "QUIT"
    KICK = "KICK"
    MODE = "MODE"
    NICK = "NICK"
    TOPIC = "TOPIC"


@dataclass(frozen=True)
class Message:
    id: int
    date: datetime
    user_id: int
    channel_id: int  # 0 = no channel
    kind: MsgKind
    text: str


@dataclass
class ChannelUser:
    """One user's activity inside one channel."""
    channel_id: int
    channel: str
    message_ids: List[int] = field(default_factory=list)
    counters: TextCounters = field(default_factory=TextCounters)

    @property
    def message_count(self) -> int:
        return len(self.message_ids)

    def add_message(self, message: Message) -> None:
        self.message_ids.append(message.id)
        self.counters.add_message(message)


@dataclass
class User:
    id: int
    network_id: int
    nick: str
    message_ids: List[int] = field(default_factory=list)
    counters: TextCounters = field(default_factory=TextCounters)
    channel_users: Dict[str, ChannelUser] = field(default_factory=dict)

    @property
    def message_count(self) -> int:
        return len(self.message_ids)

    def channel_user(self, channel: str) -> Optional[ChannelUser]:
        return self.channel_users.get(channel.lower())

    def get_channel_user(self, channel: Channel) -> ChannelUser:
        """Get or create this user's aggregate for ``channel``."""
        key = channel.name.lower()
        cu = self.channel_users.get(key)
        if cu is None:
            cu = ChannelUser(channel_id=channel.id, channel=channel.name)
            self.channel_users[key] = cu
        return cu

    def add_message(self, message: Message) -> None:
        self.message_ids.append(message.id)
        self.counters.add_message(message)


@dataclass
class Channel:
    id: int
    network_id: int
    name: str
    message_ids: List[int] = field(default_factory=list)
    counters: TextCounters = field(default_factory=TextCounters)
    kicks: int = 0
    actions: int = 0
    urls: TokenCounter = field(default_factory=new_url_counter, repr=False)
    words: TokenCounter = field(default_factory=new_word_counter, repr=False)

    @property
    def message_count(self) -> int:
        return len(self.message_ids)

    def add_message(self, message: Message) -> None:
        self.message_ids.append(message.id)
        self.counters.add_message(message)
        self.urls.add_message(message)
        self.words.add_message(message)

    def add_kick(self, message: Message) -> None:
        self.kicks += 1

    def add_action(self, message: Message) -> None:
        self.actions += 1


_DERIVED_NETWORK_FIELDS = ("_channels", "_users")


@dataclass
class Network:
    id: int
    name: str
    channel_ids: List[int] = field(default_factory=list)
    user_ids: List[int] = field(default_factory=list)
    message_ids: List[int] = field(default_factory=list)
    counters: TextCounters = field(default_factory=TextCounters)
    urls: TokenCounter = field(default_factory=new_url_counter, repr=False)
    words: TokenCounter = field(default_factory=new_word_counter, repr=False)

    # derived, never persisted
    _channels: Dict[str, Channel] = field(default_factory=dict, repr=False, compare=False)
    _users: Dict[str, User] = field(default_factory=dict, repr=False, compare=False)

    @property
    def message_count(self) -> int:
        return len(self.message_ids)

    def find_channel(self, name: str) -> Optional[Channel]:
        return self._channels.get(name.lower())

    def find_user(self, nick: str) -> Optional[User]:
        return self._users.get(nick.lower())

    def add_channel(self, channel: Channel) -> None:
        self.channel_ids.append(channel.id)
        self._channels[channel.name.lower()] = channel

    def add_user(self, user: User) -> None:
        self.user_ids.append(user.id)
        self._users[user.nick.lower()] = user

    def add_message(self, message: Message) -> None:
        self.message_ids.append(message.id)
        self.counters.add_message(message)
        self.urls.add_message(message)
        self.words.add_message(message)

    def build_indexes(self, channels: Dict[int, Channel], users: Dict[int, User]) -> None:
        """Repopulate the name indexes from the id tables."""
        self._channels = {}
        for cid in self.channel_ids:
            channel = channels[cid]
            self._channels[channel.name.lower()] = channel
        self._users = {}
        for uid in self.user_ids:
            user = users[uid]
            self._users[user.nick.lower()] = user

    def __getstate__(self):
        state = self.__dict__.copy()
        for name in _DERIVED_NETWORK_FIELDS:
            state.pop(name, None)
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._channels = {}
        self._users = {}
