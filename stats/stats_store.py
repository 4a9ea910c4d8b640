"""
IRC Statistics - Root Store
===========================
Stats owns the id-keyed tables of networks, channels and users, the id
counters, and the name -> Network index. Name resolution below the
network level is delegated to the Network itself.

Stats never locks on its own. Callers wrap mutation (add_message) and
save() in write_locked(), and queries in read_locked(), choosing how many
operations share one hold.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from core.log import get_logger
from core.threading_utils import RWLock
from stats.stats_entities import Channel, ChannelUser, Message, MsgKind, Network, User
from stats.stats_snapshot import SnapshotError, read_snapshot, write_snapshot

logger = get_logger("stats_store")

_DERIVED_STATS_FIELDS = ("_lock", "_network_by_name")


def nick_from_hostmask(hostmask: str) -> str:
    """'nick!user@host' -> 'nick'; a bare nick is returned unchanged."""
    return hostmask.split("!", 1)[0]


class Stats:
    def __init__(self):
        self.networks: Dict[int, Network] = {}
        self.channels: Dict[int, Channel] = {}
        self.users: Dict[int, User] = {}

        self.network_id_count = 1
        self.channel_id_count = 1
        self.user_id_count = 1
        self.message_id_count = 1

        self._network_by_name: Dict[str, Network] = {}
        self._lock = RWLock()

    # =========================================================================
    # Locking
    # =========================================================================

    def lock(self):
        self._lock.acquire_write()

    def unlock(self):
        self._lock.release_write()

    def rlock(self):
        self._lock.acquire_read()

    def runlock(self):
        self._lock.release_read()

    def write_locked(self):
        return self._lock.write_locked()

    def read_locked(self):
        return self._lock.read_locked()

    # =========================================================================
    # Queries (never create)
    # =========================================================================

    def get_network(self, network: str) -> Optional[Network]:
        return self._network_by_name.get(network.lower())

    def get_channel(self, network: str, channel: str) -> Optional[Channel]:
        n = self.get_network(network)
        if n is None:
            return None
        return n.find_channel(channel)

    def get_user(self, network: str, nick: str) -> Optional[User]:
        n = self.get_network(network)
        if n is None:
            return None
        return n.find_user(nick)

    # =========================================================================
    # Ingestion
    # =========================================================================

    def add_message(self, kind: MsgKind, network: str, channel: str, hostmask: str,
                    date: datetime, text: str) -> Message:
        """
        Record one IRC event.

        Missing networks, users, channels and channel users are created on
        first sight. ``channel`` may be empty (QUIT, NICK, private
        messages); only the network and the user see such a message.
        """
        c = None
        cu = None

        n = self._get_network(network)
        u = self._get_user(n, hostmask)

        if channel:
            c = self._get_channel(n, channel)
            cu = u.get_channel_user(c)

        return self._add_message(MsgKind(kind), n, c, u, cu, date, text)

    def _add_message(self, kind: MsgKind, n: Network, c: Optional[Channel], u: User,
                     cu: Optional[ChannelUser], date: datetime, text: str) -> Message:
        mid = self.message_id_count
        self.message_id_count += 1

        message = Message(
            id=mid,
            date=date,
            user_id=u.id,
            channel_id=c.id if c is not None else 0,
            kind=kind,
            text=text or "",
        )

        if c is not None:
            c.add_message(message)

            if kind is MsgKind.KICK:
                c.add_kick(message)
            elif kind is MsgKind.ACTION:
                c.add_action(message)

            if cu is not None:
                cu.add_message(message)

        n.add_message(message)
        u.add_message(message)

        return message

    def _get_network(self, name: str) -> Network:
        n = self._network_by_name.get(name.lower())
        if n is None:
            n = self._add_network(name)
        return n

    def _get_user(self, n: Network, hostmask: str) -> User:
        nick = nick_from_hostmask(hostmask)
        u = n.find_user(nick)
        if u is None:
            u = self._add_user(n, nick)
        return u

    def _get_channel(self, n: Network, name: str) -> Channel:
        c = n.find_channel(name)
        if c is None:
            c = self._add_channel(n, name)
        return c

    def _add_network(self, name: str) -> Network:
        nid = self.network_id_count
        self.network_id_count += 1

        n = Network(id=nid, name=name)
        self.networks[nid] = n
        self._network_by_name[name.lower()] = n

        logger.debug(f"New network #{nid}: {name}")
        return n

    def _add_channel(self, n: Network, name: str) -> Channel:
        cid = self.channel_id_count
        self.channel_id_count += 1

        c = Channel(id=cid, network_id=n.id, name=name)
        self.channels[cid] = c
        n.add_channel(c)

        logger.debug(f"New channel #{cid}: {name} on {n.name}")
        return c

    def _add_user(self, n: Network, nick: str) -> User:
        uid = self.user_id_count
        self.user_id_count += 1

        u = User(id=uid, network_id=n.id, nick=nick)
        self.users[uid] = u
        n.add_user(u)

        logger.debug(f"New user #{uid}: {nick} on {n.name}")
        return u

    # =========================================================================
    # Persistence
    # =========================================================================

    def build_indexes(self) -> None:
        """Rebuild every name index by scanning the id tables."""
        self._network_by_name = {}
        for n in self.networks.values():
            self._network_by_name[n.name.lower()] = n
            n.build_indexes(self.channels, self.users)

    def save(self, path) -> bool:
        """
        Write the whole graph to ``path``. Hold the write lock while calling.

        Returns False (and logs) when the snapshot cannot be written; the
        in-memory state is unaffected either way.
        """
        try:
            write_snapshot(self, path)
        except Exception as e:
            logger.error(f"Failed to save stats snapshot to {path}: {e}", exc_info=True)
            return False

        logger.info(
            f"Stats saved to {path} "
            f"(networks={len(self.networks)}, channels={len(self.channels)}, "
            f"users={len(self.users)}, messages={self.message_id_count - 1})"
        )
        return True

    @classmethod
    def load(cls, path) -> Stats:
        """
        Load the snapshot at ``path``, or start empty if there is none.

        Raises SnapshotError when an existing snapshot cannot be decoded.
        """
        stats = read_snapshot(path)

        if stats is None:
            logger.info(f"No stats snapshot at {path}, starting empty")
            return cls()

        if not isinstance(stats, cls):
            raise SnapshotError(f"Snapshot {path} does not contain {cls.__name__} data")

        try:
            stats.build_indexes()
        except KeyError as e:
            raise SnapshotError(f"Snapshot {path} references missing entity id {e}") from e

        logger.info(
            f"Stats loaded from {path} "
            f"(networks={len(stats.networks)}, channels={len(stats.channels)}, users={len(stats.users)})"
        )
        return stats

    def __getstate__(self):
        state = self.__dict__.copy()
        for name in _DERIVED_STATS_FIELDS:
            state.pop(name, None)
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._network_by_name = {}
        self._lock = RWLock()
