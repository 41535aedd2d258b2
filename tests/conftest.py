from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from LiberatorHistory import (  # noqa: E402
    LiberatorEpisode,
    LiberatorIds,
    LiberatorMovie,
    LiberatorSeason,
    LiberatorShow,
)


@pytest.fixture(autouse=True)
def not_found_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    import config

    path = tmp_path / "not_found.csv"
    monkeypatch.setattr(config, "NOT_FOUND_FILE", str(path))
    return path


def make_show(tvdb, status, seasons=(), imdb="tt0000001", title=None) -> LiberatorShow:
    return LiberatorShow(LiberatorIds(tvdb=tvdb, imdb=imdb), status, list(seasons), title=title)


def make_season(number, watched=(), unwatched=()) -> LiberatorSeason:
    episodes = [LiberatorEpisode(n, True, f"2023-01-{n:02d}T20:15:00.000Z") for n in watched]
    episodes += [LiberatorEpisode(n, False, None) for n in unwatched]
    episodes.sort(key=lambda episode: episode.number)
    return LiberatorSeason(number, episodes)


def make_movie(imdb, watched=True, watched_at="2022-06-01T20:15:00.000Z") -> LiberatorMovie:
    return LiberatorMovie(LiberatorIds(imdb=imdb), watched, watched_at if watched else None)
