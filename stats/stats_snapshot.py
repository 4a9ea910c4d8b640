"""
IRC Statistics - Snapshot Codec
===============================
Whole-graph persistence: one gzip-compressed pickle per snapshot file.

Writes go to a temporary file in the same directory and are moved into
place with os.replace(), so the previous snapshot survives a failed save.
"""

import gzip
import os
import pickle
import tempfile
from pathlib import Path
from core.log import get_logger

logger = get_logger("stats_snapshot")


class SnapshotError(Exception):
    """An existing snapshot could not be decoded."""


def write_snapshot(obj, path):
    """Serialize ``obj`` to ``path``, replacing any previous snapshot."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as raw, gzip.GzipFile(fileobj=raw, mode="wb") as gz:
            pickle.dump(obj, gz, protocol=pickle.HIGHEST_PROTOCOL)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.remove(tmp_name)
        except OSError:
            pass
        raise

    logger.debug(f"Snapshot written to {path}")


def read_snapshot(path):
    """
    Decode the snapshot at ``path``.

    Returns None when the file does not exist (cold start). Any failure to
    decode an existing file raises SnapshotError.
    """
    path = Path(path)
    try:
        with gzip.open(path, "rb") as gz:
            return pickle.load(gz)
    except FileNotFoundError:
        return None
    except Exception as e:
        raise SnapshotError(f"Failed to decode snapshot {path}: {e}") from e
