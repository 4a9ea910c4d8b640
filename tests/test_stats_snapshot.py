from __future__ import annotations

import pickle
from datetime import datetime
from pathlib import Path

import pytest

from stats.stats_entities import MsgKind
from stats.stats_snapshot import SnapshotError, read_snapshot, write_snapshot
from stats.stats_store import Stats


def _populate(stats: Stats, when: datetime) -> None:
    events = [
        (MsgKind.PRIVMSG, "Libera", "#Python", "Alice!a@h", "see http://docs.python.org now"),
        (MsgKind.PRIVMSG, "libera", "#python", "bob!b@h", "http://docs.python.org again?"),
        (MsgKind.ACTION, "LIBERA", "#Python", "alice!a@h", "likes example.com"),
        (MsgKind.KICK, "libera", "#python", "Op!o@h", "spam spam"),
        (MsgKind.QUIT, "libera", "", "bob!b@h", "bye"),
        (MsgKind.PRIVMSG, "OFTC", "#debian", "Carol!c@h", "hello WORLD!"),
    ]
    for kind, network, channel, host, text in events:
        stats.add_message(kind, network, channel, host, when, text)


def _snapshot_view(stats: Stats) -> dict:
    view = {
        "counts": (stats.network_id_count, stats.channel_id_count, stats.user_id_count, stats.message_id_count),
        "networks": {},
        "channels": {},
        "users": {},
    }
    for nid, n in stats.networks.items():
        view["networks"][nid] = (n.name, n.channel_ids, n.user_ids, n.message_ids, n.counters,
                                 n.urls.top(10), n.words.top(10))
    for cid, c in stats.channels.items():
        view["channels"][cid] = (c.network_id, c.name, c.message_ids, c.counters, c.kicks, c.actions,
                                 c.urls.top(10), c.words.top(10))
    for uid, u in stats.users.items():
        view["users"][uid] = (u.network_id, u.nick, u.message_ids, u.counters, u.channel_users)
    return view


def test_load_missing_snapshot_starts_empty(tmp_path: Path) -> None:
    stats = Stats.load(tmp_path / "absent.db")
    assert stats.networks == {}
    assert stats.message_id_count == 1
    assert stats.network_id_count == 1


def test_save_then_load_reproduces_graph(tmp_path: Path, stats: Stats, when: datetime) -> None:
    path = tmp_path / "stats.db"
    _populate(stats, when)
    before = _snapshot_view(stats)

    with stats.write_locked():
        assert stats.save(path) is True

    loaded = Stats.load(path)

    assert _snapshot_view(loaded) == before
    assert loaded.get_network("libera").id == stats.get_network("libera").id
    assert loaded.get_channel("Libera", "#PYTHON").id == stats.get_channel("libera", "#python").id
    assert loaded.get_user("libera", "ALICE").id == stats.get_user("libera", "alice").id
    assert loaded.get_user("oftc", "carol").nick == "Carol"
    assert loaded.get_channel("libera", "#python") is loaded.channels[loaded.get_channel("libera", "#python").id]


def test_loaded_stats_keep_growing_without_reusing_ids(tmp_path: Path, stats: Stats, when: datetime) -> None:
    path = tmp_path / "stats.db"
    _populate(stats, when)
    stats.save(path)

    loaded = Stats.load(path)
    m = loaded.add_message(MsgKind.PRIVMSG, "libera", "#python", "alice!a@h", when, "back")
    new_chan = loaded.add_message(MsgKind.PRIVMSG, "libera", "#new", "dave!d@h", when, "hi")

    assert m.id == stats.message_id_count
    assert len(loaded.networks) == 2
    assert loaded.get_user("libera", "alice").message_count == 3
    assert new_chan.channel_id == stats.channel_id_count
    assert loaded.get_user("libera", "dave").id == stats.user_id_count


def test_snapshot_does_not_store_name_indexes(tmp_path: Path, stats: Stats, when: datetime) -> None:
    path = tmp_path / "stats.db"
    _populate(stats, when)
    stats.save(path)

    state = stats.__getstate__()
    assert "_network_by_name" not in state
    assert "_lock" not in state
    assert "_channels" not in stats.networks[1].__getstate__()

    raw = read_snapshot(path)
    assert raw._network_by_name == {}
    for network in raw.networks.values():
        assert network._channels == {}
        assert network._users == {}
    assert raw._lock is not stats._lock


def test_save_overwrites_previous_snapshot(tmp_path: Path, stats: Stats, when: datetime) -> None:
    path = tmp_path / "stats.db"
    stats.add_message(MsgKind.PRIVMSG, "net", "#a", "x!y@z", when, "one")
    stats.save(path)
    stats.add_message(MsgKind.PRIVMSG, "net", "#b", "x!y@z", when, "two")
    stats.save(path)

    loaded = Stats.load(path)
    assert len(loaded.channels) == 2
    assert [p.name for p in tmp_path.iterdir()] == ["stats.db"]


def test_corrupt_snapshot_raises(tmp_path: Path) -> None:
    path = tmp_path / "stats.db"
    path.write_bytes(b"definitely not gzip")

    with pytest.raises(SnapshotError):
        Stats.load(path)


def test_snapshot_of_wrong_type_raises(tmp_path: Path) -> None:
    path = tmp_path / "stats.db"
    write_snapshot({"not": "stats"}, path)

    with pytest.raises(SnapshotError, match="does not contain Stats"):
        Stats.load(path)


def test_failed_save_reports_false_and_keeps_state(tmp_path: Path, stats: Stats, when: datetime) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x")
    stats.add_message(MsgKind.PRIVMSG, "net", "#a", "x!y@z", when, "one")

    assert stats.save(blocker / "stats.db") is False
    assert stats.get_channel("net", "#a").message_count == 1


def test_failed_write_leaves_previous_snapshot(tmp_path: Path, stats: Stats, when: datetime,
                                               monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "stats.db"
    stats.add_message(MsgKind.PRIVMSG, "net", "#a", "x!y@z", when, "one")
    assert stats.save(path)

    def broken_dump(*args, **kwargs):
        raise pickle.PicklingError("boom")

    monkeypatch.setattr("stats.stats_snapshot.pickle.dump", broken_dump)
    stats.add_message(MsgKind.PRIVMSG, "net", "#b", "x!y@z", when, "two")
    assert stats.save(path) is False

    monkeypatch.undo()
    assert len(Stats.load(path).channels) == 1
    assert [p.name for p in tmp_path.iterdir()] == ["stats.db"]
