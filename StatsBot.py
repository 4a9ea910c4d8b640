# ───────────────────────────────────────────────
# StatsBot: IRC client feeding the stats store
# ───────────────────────────────────────────────

import datetime

from twisted.internet import protocol
from twisted.words.protocols import irc

from core.log import get_logger
from stats.stats_entities import MsgKind

logger = get_logger("statsbot")


def normalize_channel_target(target):
    """
    '#channel' stays as is; anything else (our own nick for a private
    message or a user mode change) becomes '' so it is not counted as a
    channel.
    """
    if target and target[0] in irc.CHANNEL_PREFIXES:
        return target
    return ""


class StatsBot(irc.IRCClient):
    def __init__(self, manager, network, nickname, realname=None, username=None, channels=None):
        self.manager = manager
        self.network = network
        self.nickname = nickname
        self.realname = realname
        self.username = username
        self.autojoin = list(channels or [])

    def _capture(self, kind, channel, hostmask, text=""):
        try:
            self.manager.record(kind, self.network, normalize_channel_target(channel), hostmask,
                                datetime.datetime.now(), text or "")
        except Exception as e:
            logger.error(f"Stats capture failed for {kind.value}: {e}", exc_info=True)

    def lineReceived(self, line):
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        super().lineReceived(line)

    # --- connection ---
    def signedOn(self):
        logger.info(f"Signed on to {self.network} as {self.nickname}")
        for channel in self.autojoin:
            self.join(channel)

    def joined(self, channel):
        logger.info(f"Joined channel {channel}")

    def connectionLost(self, reason):
        super().connectionLost(reason)
        logger.info(f"🔌 Disconnected from {self.network}: {reason}")

    # --- events ---
    def privmsg(self, user, channel, message):
        self._capture(MsgKind.PRIVMSG, channel, user, message)

    def action(self, user, channel, data):
        self._capture(MsgKind.ACTION, channel, user, data)

    def noticed(self, user, channel, message):
        # server notices before registration carry no nick
        if not user or "!" not in user:
            return
        self._capture(MsgKind.NOTICE, channel, user, message)

    def userJoined(self, user, channel):
        self._capture(MsgKind.JOIN, channel, user)

    def userLeft(self, user, channel):
        self._capture(MsgKind.PART, channel, user)

    def userQuit(self, user, quitMessage):
        self._capture(MsgKind.QUIT, "", user, quitMessage)

    def userKicked(self, kickee, channel, kicker, message):
        self._capture(MsgKind.KICK, channel, kicker, message)

    def userRenamed(self, oldname, newname):
        self._capture(MsgKind.NICK, "", oldname, newname)

    def topicUpdated(self, user, channel, newTopic):
        self._capture(MsgKind.TOPIC, channel, user, newTopic)

    def modeChanged(self, user, channel, set, modes, args):
        change = f"{'+' if set else '-'}{modes} {' '.join(a for a in args if a)}".strip()
        self._capture(MsgKind.MODE, channel, user, change)

    def irc_RPL_TOPIC(self, prefix, params):
        # topic sent on join is not a change; the prefix is the server
        logger.debug(f"Current topic for {params[1]}: {params[2]}")


class StatsBotFactory(protocol.ReconnectingClientFactory):
    def __init__(self, manager, network, nickname, realname=None, username=None, channels=None):
        self.manager = manager
        self.network = network
        self.nickname = nickname
        self.realname = realname
        self.username = username
        self.channels = list(channels or [])
        self.initialDelay = 1.0
        self.maxDelay = 60.0
        self.factor = 1.5
        self.jitter = 0.1

    def buildProtocol(self, addr):
        bot = StatsBot(self.manager, self.network, self.nickname,
                       realname=self.realname, username=self.username, channels=self.channels)
        bot.factory = self
        self.resetDelay()
        return bot

    def clientConnectionLost(self, connector, reason):
        logger.info(f"Connection lost: {reason}. Reconnecting...")
        super().clientConnectionLost(connector, reason)

    def clientConnectionFailed(self, connector, reason):
        logger.info(f"Connection failed: {reason}. Retrying...")
        super().clientConnectionFailed(connector, reason)
