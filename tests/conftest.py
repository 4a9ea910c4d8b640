from __future__ import annotations

import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# core.environment_config reads these at import time
os.environ.setdefault("IRCSTATS_LOGS_DIR", tempfile.mkdtemp(prefix="ircstats-logs-"))
os.environ.setdefault("IRCSTATS_QUIET", "true")
os.environ.setdefault("IRCSTATS_LOG_LEVEL", "DEBUG")

from stats.stats_store import Stats  # noqa: E402


@pytest.fixture
def stats() -> Stats:
    return Stats()


@pytest.fixture
def when() -> datetime:
    return datetime(2024, 5, 1, 12, 0, 0)
