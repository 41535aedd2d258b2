from __future__ import annotations

import json
import math

from conftest import make_movie, make_season, make_show
from LiberatorHistory import LiberatorIds
from TraktPayload import (
    SyncBatch,
    buildHidden,
    buildHistory,
    buildWatchlist,
    countEpisodes,
    movieIds,
    showIds,
    toWire,
)


def test_show_ids_fill_unknown_fields() -> None:
    ids = showIds(LiberatorIds(tvdb=81189, imdb="tt0903747"))
    assert ids["tvdb"] == 81189
    assert ids["imdb"] == "tt0903747"
    assert ids["slug"] == ""
    assert ids["tmdb"] == float("-inf")
    assert ids["trakt"] == float("-inf")


def test_imdb_minus_one_means_not_provided() -> None:
    assert showIds(LiberatorIds(tvdb=1, imdb="-1"))["imdb"] == ""
    assert movieIds(LiberatorIds(imdb="-1"))["imdb"] == ""


def test_missing_ids_become_sentinels_not_none() -> None:
    ids = showIds(LiberatorIds())
    assert ids["tvdb"] == float("-inf")
    assert ids["imdb"] == ""
    assert None not in ids.values()
    assert set(movieIds(LiberatorIds())) == {"imdb", "slug", "tmdb", "trakt"}


def test_watchlist_contains_only_not_started_shows() -> None:
    shows = [
        make_show(1, "not_started_yet"),
        make_show(2, "in_progress"),
        make_show(3, "stopped"),
        make_show(4, "not_started_yet"),
        make_show(5, "finished"),
    ]
    batch = buildWatchlist(shows, [])
    assert [item["ids"]["tvdb"] for item in batch.shows] == [1, 4]
    assert all(set(item) == {"ids"} for item in batch.shows)


def test_watchlist_keeps_every_movie() -> None:
    movies = [make_movie("tt1", watched=True), make_movie("tt2", watched=False)]
    batch = buildWatchlist([], movies)
    assert [item["ids"]["imdb"] for item in batch.movies] == ["tt1", "tt2"]
    assert batch.movies[0]["watched_at"] == "2022-06-01T20:15:00.000Z"
    assert batch.movies[1]["watched_at"] is None
    assert batch.count == 2


def test_history_keeps_only_watched_episodes() -> None:
    show = make_show(10, "in_progress", [make_season(1, watched=(1, 3), unwatched=(2,))])
    batch = buildHistory([show], [])
    season = batch.shows[0]["seasons"][0]
    assert season["number"] == 1
    assert season["episodes"] == [
        {"watched_at": "2023-01-01T20:15:00.000Z", "number": 1},
        {"watched_at": "2023-01-03T20:15:00.000Z", "number": 3},
    ]


def test_history_keeps_season_without_watched_episodes() -> None:
    show = make_show(
        20,
        "in_progress",
        [make_season(1, watched=(1, 2, 3)), make_season(2, unwatched=(1, 2))],
    )
    batch = buildHistory([show], [])
    seasons = batch.shows[0]["seasons"]
    assert [s["number"] for s in seasons] == [1, 2]
    assert len(seasons[0]["episodes"]) == 3
    assert seasons[1]["episodes"] == []


def test_history_includes_show_without_any_watched_episode() -> None:
    batch = buildHistory([make_show(30, "not_started_yet", [make_season(1, unwatched=(1,))])], [])
    assert len(batch.shows) == 1
    assert countEpisodes(batch) == 0


def test_history_movies_are_watched_only() -> None:
    batch = buildHistory([], [make_movie("tt1"), make_movie("tt2", watched=False)])
    assert [m["ids"]["imdb"] for m in batch.movies] == ["tt1"]


def test_hidden_contains_only_stopped_shows() -> None:
    shows = [make_show(1, "stopped"), make_show(2, "in_progress"), make_show(3, "stopped")]
    batch = buildHidden(shows)
    assert [item["ids"]["tvdb"] for item in batch.shows] == [1, 3]
    assert batch.movies == []


def test_count_episodes() -> None:
    shows = [
        make_show(1, "in_progress", [make_season(1, watched=(1, 2)), make_season(2, watched=(1,))]),
        make_show(2, "stopped", [make_season(1, watched=(4,), unwatched=(5,))]),
    ]
    assert countEpisodes(buildHistory(shows, [])) == 4


def test_builders_are_idempotent() -> None:
    shows = [
        make_show(1, "not_started_yet"),
        make_show(2, "stopped", [make_season(1, watched=(1,), unwatched=(2,))]),
    ]
    movies = [make_movie("tt1"), make_movie("-1", watched=False)]
    for build in (lambda: buildWatchlist(shows, movies), lambda: buildHistory(shows, movies)):
        first, second = build(), build()
        assert first == second
        assert json.dumps(toWire(first.payload())) == json.dumps(toWire(second.payload()))
    assert buildHidden(shows) == buildHidden(shows)


def test_to_wire_replaces_infinity_with_none() -> None:
    batch = buildWatchlist([make_show(None, "not_started_yet", imdb="-1")], [])
    wire = toWire(batch.payload())
    assert wire["shows"][0]["ids"] == {"tvdb": None, "imdb": "", "slug": "", "tmdb": None, "trakt": None}
    # the batch itself keeps its sentinels
    assert math.isinf(batch.shows[0]["ids"]["tmdb"])
    json.dumps(wire, allow_nan=False)


def test_sync_batch_payload_shape() -> None:
    batch = SyncBatch(shows=[{"ids": {}}])
    assert batch.payload() == {"shows": [{"ids": {}}], "movies": []}
    assert batch.count == 1
