from __future__ import annotations

import io

import pytest

from VipLimit import FREE_WATCHLIST_LIMIT, decide, limit, logVipError


def test_limits_per_tier() -> None:
    assert limit(True) == 10000
    assert limit(False) == FREE_WATCHLIST_LIMIT
    assert limit(False) < limit(True)


@pytest.mark.parametrize(
    "vip, shows, movies, proceed",
    [
        (False, 60, 40, True),
        (False, 60, 41, False),
        (False, 0, 0, True),
        (True, 5000, 5000, True),
        (True, 5000, 5001, False),
        (True, 3, 2, True),
    ],
)
def test_decide_blocks_only_above_limit(vip: bool, shows: int, movies: int, proceed: bool) -> None:
    decision = decide(vip, shows, movies)
    assert decision.proceed is proceed
    assert decision.blocked is (not proceed)
    assert decision.total == shows + movies
    assert decision.limit == limit(vip)


def test_free_tier_diagnostic_mentions_upgrade() -> None:
    out = io.StringIO()
    logVipError(decide(False, 80, 30), stream=out)
    text = out.getvalue()
    assert "Shows: 80" in text
    assert "Movies: 30" in text
    assert "Total: 110" in text
    assert f"Limit: {FREE_WATCHLIST_LIMIT} items (FREE tier)" in text
    assert "https://trakt.tv/vip" in text
    assert "Skipping watchlist import" in text


def test_vip_diagnostic_has_no_upgrade_hint() -> None:
    out = io.StringIO()
    logVipError(decide(True, 9000, 1500), stream=out)
    text = out.getvalue()
    assert "Limit: 10000 items (VIP tier)" in text
    assert "trakt.tv/vip" not in text
