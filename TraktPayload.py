"""
Builds the request bodies Trakt expects from a Liberator history.

Trakt wants every id field present, so values the export does not know are
filled with sentinels: an empty string for text ids and negative infinity for
numeric ids. Infinity has no JSON representation; ``toWire`` turns it into
``null`` right before a body is sent.
"""

import math
from typing import Iterable, List, Optional

from LiberatorHistory import (
    SHOW_STATUS_NOT_STARTED,
    SHOW_STATUS_STOPPED,
    LiberatorIds,
    LiberatorMovie,
    LiberatorShow,
)

# Liberator writes "-1" when it has no IMDb id
IMDB_NOT_PROVIDED = "-1"
UNKNOWN_TEXT = ""
UNKNOWN_NUMBER = float("-inf")


def _text(value: Optional[str]) -> str:
    if value is None or value == IMDB_NOT_PROVIDED:
        return UNKNOWN_TEXT
    return value


def _number(value: Optional[int]):
    return UNKNOWN_NUMBER if value is None else value


def showIds(ids: LiberatorIds) -> dict:
    return {
        "tvdb": _number(ids.tvdb),
        "imdb": _text(ids.imdb),
        "slug": UNKNOWN_TEXT,
        "tmdb": UNKNOWN_NUMBER,
        "trakt": UNKNOWN_NUMBER,
    }


def movieIds(ids: LiberatorIds) -> dict:
    return {
        "imdb": _text(ids.imdb),
        "slug": UNKNOWN_TEXT,
        "tmdb": UNKNOWN_NUMBER,
        "trakt": UNKNOWN_NUMBER,
    }


def toWire(value):
    """Copy a request body, replacing non-finite floats with None so it serialises as JSON."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: toWire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [toWire(item) for item in value]
    return value


class SyncBatch(object):
    """Shows and movies destined for one Trakt request."""

    def __init__(self, shows: Optional[List[dict]] = None, movies: Optional[List[dict]] = None):
        self.shows: List[dict] = list(shows or [])
        self.movies: List[dict] = list(movies or [])

    @property
    def count(self) -> int:
        return len(self.shows) + len(self.movies)

    def payload(self) -> dict:
        return {"shows": self.shows, "movies": self.movies}

    def __eq__(self, other):
        if not isinstance(other, SyncBatch):
            return NotImplemented
        return self.shows == other.shows and self.movies == other.movies

    def __repr__(self):
        return f"SyncBatch(shows={len(self.shows)}, movies={len(self.movies)})"


def buildWatchlist(shows: Iterable[LiberatorShow], movies: Iterable[LiberatorMovie]) -> SyncBatch:
    """
    Shows the user has not started yet, plus every movie of the export.

    Movies are added whether or not they were watched, and their ``watched_at``
    is passed along as it is.
    """
    return SyncBatch(
        shows=[
            {"ids": showIds(show.ids)}
            for show in shows
            if show.status == SHOW_STATUS_NOT_STARTED
        ],
        movies=[
            {"watched_at": movie.watchedAt, "ids": movieIds(movie.ids)}
            for movie in movies
        ],
    )


def buildHistory(shows: Iterable[LiberatorShow], movies: Iterable[LiberatorMovie]) -> SyncBatch:
    """
    Watched episodes grouped by show and season, plus the watched movies.

    Every show and every season is kept even when nothing in it was watched, so
    a season without watched episodes is sent with an empty episode list.
    """
    return SyncBatch(
        shows=[
            {
                "ids": showIds(show.ids),
                "seasons": [
                    {
                        "number": season.number,
                        "episodes": [
                            {"watched_at": episode.watchedAt, "number": episode.number}
                            for episode in season.watchedEpisodes()
                        ],
                    }
                    for season in show.seasons
                ],
            }
            for show in shows
        ],
        movies=[
            {"watched_at": movie.watchedAt, "ids": movieIds(movie.ids)}
            for movie in movies
            if movie.isWatched
        ],
    )


def buildHidden(shows: Iterable[LiberatorShow]) -> SyncBatch:
    # Stopped shows only; the same batch feeds both hidden sections.
    return SyncBatch(
        shows=[
            {"ids": showIds(show.ids)}
            for show in shows
            if show.status == SHOW_STATUS_STOPPED
        ],
    )


def countEpisodes(batch: SyncBatch) -> int:
    return sum(
        len(season["episodes"])
        for show in batch.shows
        for season in show.get("seasons", [])
    )
