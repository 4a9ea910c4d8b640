"""
IRC Statistics - Central Manager
=================================
Owns one Stats root for the life of the process:
- load the snapshot at start (a corrupt snapshot stops startup)
- record IRC events under the write lock
- autosave on a background worker
- save once more on shutdown
"""

from core.log import get_logger
from core.threading_utils import ThreadWorker
from stats.stats_config import StatsConfig
from stats.stats_store import Stats

logger = get_logger("stats_manager")


class StatsManager:
    """Lifecycle and locking policy around a Stats root."""

    def __init__(self, config=None):
        self.config = config if config is not None else StatsConfig()
        self.stats = None
        self.autosave_worker = None
        self.is_running = False

    @property
    def snapshot_file(self):
        return self.config.get_snapshot_file()

    def start(self):
        """Load the snapshot and start autosave. Raises SnapshotError on a bad snapshot."""
        if self.is_running:
            logger.warning("Stats system already running")
            return self.stats

        if not self.config.is_enabled():
            logger.info("Stats system disabled by config, nothing will be recorded")
            return None

        logger.info("=" * 60)
        logger.info("Initializing IRC Statistics System")
        logger.info("=" * 60)

        self.stats = Stats.load(self.snapshot_file)

        if self.config.is_autosave_enabled():
            self._start_autosave()

        self.is_running = True
        logger.info("[OK] IRC Statistics System started")
        return self.stats

    def _start_autosave(self):
        interval = self.config.get_autosave_interval()

        def autosave_loop(stop_event):
            while not stop_event.wait(interval):
                self.save()

        self.autosave_worker = ThreadWorker(target=autosave_loop, name="StatsAutosave")
        self.autosave_worker.start()
        logger.info(f"✓ Autosave started (interval: {interval}s)")

    def record(self, kind, network, channel, hostmask, date, text):
        """Add one event to the stats under the write lock. No-op while no stats are loaded."""
        if self.stats is None:
            return None
        with self.stats.write_locked():
            return self.stats.add_message(kind, network, channel, hostmask, date, text)

    def save(self):
        if self.stats is None:
            return False
        with self.stats.write_locked():
            return self.stats.save(self.snapshot_file)

    def top_urls(self, network, n=None):
        return self._top(network, "urls", n)

    def top_words(self, network, n=None):
        return self._top(network, "words", n)

    def _top(self, network, counter, n):
        if n is None:
            n = self.config.get_top_n()
        if self.stats is None:
            return []
        with self.stats.read_locked():
            net = self.stats.get_network(network)
            if net is None:
                return []
            return getattr(net, counter).top(n)

    def shutdown(self):
        if not self.is_running:
            return

        logger.info("Shutting down stats system...")

        if self.autosave_worker is not None:
            self.autosave_worker.stop()
            self.autosave_worker.join(timeout=5.0)
            self.autosave_worker = None

        if self.save():
            logger.info("✓ Final snapshot written")
        else:
            logger.error("✗ Final snapshot failed, in-memory stats were not persisted")

        self.is_running = False
        logger.info("✓ Stats system shutdown complete")

    def get_status(self):
        stats = self.stats
        return {
            'enabled': self.config.is_enabled(),
            'running': self.is_running,
            'autosave_running': bool(self.autosave_worker and self.autosave_worker.is_alive()),
            'snapshot_file': self.snapshot_file,
            'networks': len(stats.networks) if stats else 0,
            'channels': len(stats.channels) if stats else 0,
            'users': len(stats.users) if stats else 0,
        }
