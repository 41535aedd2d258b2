import json
import logging
import os
from typing import List, Optional

from tqdm import tqdm

import config

SHOW_STATUS_NOT_STARTED = "not_started_yet"
SHOW_STATUS_STOPPED = "stopped"


class LiberatorExportError(ValueError):
    """Raised when an export document does not have the expected shape."""

    def __init__(self, filename: str, message: str):
        super().__init__(f"{filename}: {message}")
        self.filename = filename


# The cross-reference ids of a show or movie. None means the export did not know the value.
class LiberatorIds(object):
    def __init__(self, tvdb: Optional[int] = None, imdb: Optional[str] = None):
        self.tvdb = tvdb
        self.imdb = imdb

    def __eq__(self, other):
        if not isinstance(other, LiberatorIds):
            return NotImplemented
        return self.tvdb == other.tvdb and self.imdb == other.imdb

    def __repr__(self):
        return f"LiberatorIds(tvdb={self.tvdb!r}, imdb={self.imdb!r})"


# A watchable item with a watched flag and the moment it was watched
class LiberatorWatchableItem(object):
    def __init__(self, isWatched: bool = False, watchedAt: Optional[str] = None):
        self.isWatched = isWatched
        self.watchedAt = watchedAt


class LiberatorEpisode(LiberatorWatchableItem):
    def __init__(self, number: int, isWatched: bool = False, watchedAt: Optional[str] = None):
        super().__init__(isWatched, watchedAt)
        self.number = number


class LiberatorSeason(object):
    def __init__(self, number: int, episodes: Optional[List[LiberatorEpisode]] = None):
        self.number = number
        self.episodes: List[LiberatorEpisode] = list(episodes or [])

    def watchedEpisodes(self) -> List[LiberatorEpisode]:
        """Episodes of this season that are marked as watched, in export order"""
        return [episode for episode in self.episodes if episode.isWatched]


class LiberatorShow(object):
    def __init__(
        self,
        ids: LiberatorIds,
        status: str,
        seasons: Optional[List[LiberatorSeason]] = None,
        title: Optional[str] = None,
    ):
        self.ids = ids
        self.status = status
        self.seasons: List[LiberatorSeason] = list(seasons or [])
        self.title = title


class LiberatorMovie(LiberatorWatchableItem):
    def __init__(
        self,
        ids: LiberatorIds,
        isWatched: bool = False,
        watchedAt: Optional[str] = None,
        title: Optional[str] = None,
    ):
        super().__init__(isWatched, watchedAt)
        self.ids = ids
        self.title = title


# Everything a Liberator export knows about the shows and movies a user watched.
class LiberatorHistory(object):
    def __init__(self, shows=None, movies=None):
        self.shows: List[LiberatorShow] = list(shows or [])
        self.movies: List[LiberatorMovie] = list(movies or [])

    @classmethod
    def loadFromDirectory(cls, path: Optional[str] = None) -> "LiberatorHistory":
        """
        Read ``shows.json`` and ``movies.json`` from the export directory.

        :param path: Directory of the export, defaults to ``config.LIBERATOR_EXPORT_PATH``
        :raises OSError: when a file is missing or unreadable
        :raises LiberatorExportError: when a file is not a valid export document
        :return: The parsed history
        """
        path = path if path is not None else config.LIBERATOR_EXPORT_PATH
        history = cls()

        rawShows = _readDocument(os.path.join(path, config.SHOWS_FILENAME))
        for index, raw in enumerate(tqdm(rawShows, desc="Reading shows", unit="show")):
            history.shows.append(_parseShow(raw, config.SHOWS_FILENAME, index))

        rawMovies = _readDocument(os.path.join(path, config.MOVIES_FILENAME))
        for index, raw in enumerate(tqdm(rawMovies, desc="Reading movies", unit="movie")):
            history.movies.append(_parseMovie(raw, config.MOVIES_FILENAME, index))

        logging.info(
            f"Loaded Liberator export from {path}: {len(history.shows)} shows, {len(history.movies)} movies"
        )
        return history


def _readDocument(filename: str) -> list:
    with open(filename, "r", encoding="utf-8") as infile:
        try:
            document = json.load(infile)
        except json.JSONDecodeError as e:
            raise LiberatorExportError(filename, f"invalid JSON ({e})") from e
    if not isinstance(document, list):
        raise LiberatorExportError(filename, "expected a JSON array at the top level")
    return document


def _parseIds(raw: dict, filename: str, where: str) -> LiberatorIds:
    ids = raw.get("id")
    if not isinstance(ids, dict):
        raise LiberatorExportError(filename, f"{where} has no 'id' object")
    tvdb = ids.get("tvdb")
    imdb = ids.get("imdb")
    if tvdb is not None and not isinstance(tvdb, int):
        try:
            tvdb = int(tvdb)
        except (TypeError, ValueError):
            raise LiberatorExportError(filename, f"{where} has a non-numeric tvdb id {tvdb!r}")
    if imdb is not None:
        imdb = str(imdb)
    return LiberatorIds(tvdb=tvdb, imdb=imdb)


def _expectList(raw: dict, key: str, filename: str, where: str) -> list:
    value = raw.get(key, [])
    if value is None:
        return []
    if not isinstance(value, list):
        raise LiberatorExportError(filename, f"{where} field '{key}' is not a list")
    return value


def _expectNumber(raw: dict, filename: str, where: str) -> int:
    number = raw.get("number")
    if isinstance(number, bool) or not isinstance(number, int):
        raise LiberatorExportError(filename, f"{where} has no valid 'number'")
    return number


def _parseEpisode(raw, filename: str, where: str) -> LiberatorEpisode:
    if not isinstance(raw, dict):
        raise LiberatorExportError(filename, f"{where} is not an object")
    return LiberatorEpisode(
        number=_expectNumber(raw, filename, where),
        isWatched=bool(raw.get("is_watched", False)),
        watchedAt=raw.get("watched_at"),
    )


def _parseSeason(raw, filename: str, where: str) -> LiberatorSeason:
    if not isinstance(raw, dict):
        raise LiberatorExportError(filename, f"{where} is not an object")
    season = LiberatorSeason(_expectNumber(raw, filename, where))
    for index, rawEpisode in enumerate(_expectList(raw, "episodes", filename, where)):
        season.episodes.append(_parseEpisode(rawEpisode, filename, f"{where} episode #{index}"))
    return season


def _parseShow(raw, filename: str, index: int) -> LiberatorShow:
    where = f"show #{index}"
    if not isinstance(raw, dict):
        raise LiberatorExportError(filename, f"{where} is not an object")
    show = LiberatorShow(
        ids=_parseIds(raw, filename, where),
        status=raw.get("status") or "",
        title=raw.get("title") or raw.get("name"),
    )
    for seasonIndex, rawSeason in enumerate(_expectList(raw, "seasons", filename, where)):
        show.seasons.append(_parseSeason(rawSeason, filename, f"{where} season #{seasonIndex}"))
    return show


def _parseMovie(raw, filename: str, index: int) -> LiberatorMovie:
    where = f"movie #{index}"
    if not isinstance(raw, dict):
        raise LiberatorExportError(filename, f"{where} is not an object")
    return LiberatorMovie(
        ids=_parseIds(raw, filename, where),
        isWatched=bool(raw.get("is_watched", False)),
        watchedAt=raw.get("watched_at"),
        title=raw.get("title") or raw.get("name"),
    )
