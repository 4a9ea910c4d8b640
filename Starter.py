# Starter.py

# ───────────────────────────────────────────────
# IRC Stats Starter Script
# ───────────────────────────────────────────────

import sys

from twisted.internet import reactor, ssl

from core.environment_config import config as s
from core.log import get_logger, install_excepthook, log_session_banner
from stats.stats_manager import StatsManager
from stats.stats_snapshot import SnapshotError
from StatsBot import StatsBotFactory

logger = get_logger()
install_excepthook(logger)


def main():
    servers = s.server_list()
    if not servers:
        print("❌ No servers in list to connect to.")
        return 1

    manager = StatsManager()
    log_session_banner(logger, title="IRCSTATS START", details={
        "nickname": s.nickname,
        "network": s.network,
        "servers": ", ".join(s.servers),
        "channels": ", ".join(s.channels),
        "snapshot": manager.snapshot_file,
    })

    try:
        manager.start()
    except SnapshotError as e:
        logger.error(f"Refusing to start: {e}")
        print(f"❌ {e}")
        return 1

    def _shutdown():
        manager.shutdown()
        for token, count in manager.top_urls(s.network):
            logger.info(f"   top url: {token} ({count})")

    reactor.addSystemEventTrigger('before', 'shutdown', _shutdown)

    host, port = servers[0]
    factory = StatsBotFactory(manager, s.network, s.nickname,
                              realname=s.realname, username=s.username, channels=s.channels)
    if s.ssl_use:
        reactor.connectSSL(host, port, factory, ssl.ClientContextFactory())
    else:
        reactor.connectTCP(host, port, factory)

    print(f"🚀 IRC stats collector started! Connecting to {host}:{port}")
    reactor.run()
    return 0


if __name__ == '__main__':
    sys.exit(main())
