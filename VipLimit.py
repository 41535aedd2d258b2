import sys

# Trakt caps the watchlist size per account tier
FREE_WATCHLIST_LIMIT = 100
VIP_WATCHLIST_LIMIT = 10000
VIP_UPGRADE_URL = "https://trakt.tv/vip"


def limit(vip: bool) -> int:
    return VIP_WATCHLIST_LIMIT if vip else FREE_WATCHLIST_LIMIT


def tierName(vip: bool) -> str:
    return "VIP" if vip else "FREE"


class CapacityDecision(object):
    """Whether a watchlist of ``shows`` + ``movies`` items fits the account's limit."""

    def __init__(self, vip: bool, shows: int, movies: int):
        self.vip = vip
        self.shows = shows
        self.movies = movies
        self.total = shows + movies
        self.limit = limit(vip)
        self.proceed = self.total <= self.limit

    @property
    def blocked(self) -> bool:
        return not self.proceed

    def __repr__(self):
        state = "proceed" if self.proceed else "blocked"
        return f"CapacityDecision({state}, total={self.total}, limit={self.limit}, tier={tierName(self.vip)})"


def decide(vip: bool, showCount: int, movieCount: int) -> CapacityDecision:
    return CapacityDecision(vip, showCount, movieCount)


def logVipError(decision: CapacityDecision, stream=None):
    """
    Explain on stderr why the watchlist import is skipped.

    :param decision: A blocked decision from ``decide``
    :param stream: Where to write, defaults to ``sys.stderr``
    """
    stream = stream if stream is not None else sys.stderr

    def emit(line: str = ""):
        print(line, file=stream)

    emit("\n❌ WATCHLIST IMPORT FAILED")
    emit("\n⚠️  Your watchlist exceeds the limit:")
    emit(f"   Shows: {decision.shows}")
    emit(f"   Movies: {decision.movies}")
    emit(f"   Total: {decision.total}")
    emit(f"   Limit: {decision.limit} items ({tierName(decision.vip)} tier)")

    if not decision.vip:
        emit(f"💡 Trakt VIP members get a {VIP_WATCHLIST_LIMIT:,} item limit!")
        emit(f"   Consider upgrading your account: {VIP_UPGRADE_URL}\n")

    emit("\n⏭️  Skipping watchlist import and proceeding with watch history...\n")
