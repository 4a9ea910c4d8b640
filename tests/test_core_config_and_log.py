from __future__ import annotations

import logging
from pathlib import Path

import pytest

from core.environment_config import EnvironmentConfig
from core.log import LineCountRotatingFileHandler, get_logger


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("IRCSTATS_SERVERS", "irc.example.org:6697,irc2.example.org")
    monkeypatch.setenv("IRCSTATS_CHANNELS", "#one, #two")
    monkeypatch.setenv("IRCSTATS_SSL_USE", "yes")
    monkeypatch.setenv("IRCSTATS_PORT", "7000")
    monkeypatch.delenv("IRCSTATS_NETWORK", raising=False)

    cfg = EnvironmentConfig()

    assert cfg.channels == ["#one", "#two"]
    assert cfg.ssl_use is True
    assert cfg.port == 7000
    assert cfg.network == "irc.example.org"
    assert cfg.server_list() == [("irc.example.org", 6697), ("irc2.example.org", 7000)]


def test_env_file_is_read(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("IRCSTATS_NICKNAME", raising=False)
    monkeypatch.delenv("IRCSTATS_NETWORK", raising=False)
    (tmp_path / ".env").write_text('# comment\nIRCSTATS_NICKNAME="Counter"\nIRCSTATS_NETWORK=Libera\nIGNORED=1\n')

    cfg = EnvironmentConfig()

    assert cfg.nickname == "Counter"
    assert cfg.network == "Libera"
    assert cfg.get("missing", "fallback") == "fallback"
    with pytest.raises(AttributeError):
        cfg.missing


def test_get_logger_returns_children_of_one_root() -> None:
    a = get_logger("stats_store")
    b = get_logger("statsbot")
    root = get_logger()

    assert a.parent is root
    assert b.parent is root
    assert root.name == "ircstats"
    assert sum(isinstance(h, LineCountRotatingFileHandler) for h in root.handlers) == 1


def test_line_count_rotation(tmp_path: Path) -> None:
    path = tmp_path / "rot.log"
    handler = LineCountRotatingFileHandler(str(path), max_lines=3, backup_count=1)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger = logging.getLogger("ircstats-test-rotation")
    logger.propagate = False
    logger.addHandler(handler)
    try:
        for i in range(5):
            logger.warning("line %d", i)
    finally:
        logger.removeHandler(handler)
        handler.close()

    assert path.read_text().splitlines() == ["line 3", "line 4"]
    backups = list(tmp_path.glob("rot.log.*.bak"))
    assert len(backups) == 1
    assert backups[0].read_text().splitlines() == ["line 0", "line 1", "line 2"]
