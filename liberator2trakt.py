#!/usr/bin/env python3
"""
Liberator to Trakt Import Script
Imports a Liberator export (shows.json, movies.json) into a Trakt account:
watchlist, watch history and the hidden sections for stopped shows.
"""

import logging
import sys
from csv import writer as csv_writer
from typing import Callable, Optional

import config
from LiberatorHistory import LiberatorExportError, LiberatorHistory
from TraktIO import (
    HIDDEN_SECTION_PROGRESS,
    HIDDEN_SECTION_RECOMMENDATIONS,
    RemoteOperationError,
    TraktIO,
)
from TraktPayload import buildHidden, buildHistory, buildWatchlist, countEpisodes
from VipLimit import decide, logVipError

CONTINUE_PROMPT = "Press Enter to continue importing your watch history..."
NOT_FOUND_HEADER = ["Operation", "Type", "IMDb", "TVDB"]


class SyncReport(object):
    """What each step of a run submitted and what Trakt answered."""

    def __init__(self):
        self.vip = False
        self.watchlist_submitted = False
        self.watchlist_shows = 0
        self.watchlist_movies = 0
        self.history_episodes = 0
        self.history_movies = 0
        self.hidden_shows = 0
        self.responses = {}


def promptUser(question: str):
    """Block until the user presses Enter. Raises EOFError when stdin is closed."""
    input(question)


def init_not_found_file(filename: Optional[str] = None):
    filename = filename or config.NOT_FOUND_FILE
    with open(filename, "w", newline="", encoding="utf-8") as f:
        csv_writer(f).writerow(NOT_FOUND_HEADER)


def append_not_found(operation: str, response: dict, filename: Optional[str] = None) -> int:
    """Append the items Trakt could not match to the not-found CSV and return how many there were."""
    not_found = response.get("not_found") or {}
    rows = []
    for kind, items in not_found.items():
        if not isinstance(items, list):
            continue
        for item in items:
            ids = item.get("ids", {}) if isinstance(item, dict) else {}
            rows.append([operation, kind, ids.get("imdb") or "", ids.get("tvdb") or ""])
    if rows:
        with open(filename or config.NOT_FOUND_FILE, "a", newline="", encoding="utf-8") as f:
            csv_writer(f).writerows(rows)
        logging.warning(f"{operation}: Trakt could not match {len(rows)} items")
    return len(rows)


def summarize(response: dict) -> str:
    parts = []
    for key in ("added", "existing", "updated"):
        counts = response.get(key)
        if isinstance(counts, dict):
            nonzero = {kind: n for kind, n in counts.items() if isinstance(n, int) and n}
            if nonzero:
                parts.append(f"{key} " + ", ".join(f"{n} {kind}" for kind, n in nonzero.items()))
    not_found = response.get("not_found") or {}
    missing = sum(len(v) for v in not_found.values() if isinstance(v, list))
    if missing:
        parts.append(f"not found {missing}")
    return "; ".join(parts) if parts else "no changes"


def reportResponse(label: str, operation: str, response: dict, report: SyncReport):
    report.responses[operation] = response
    append_not_found(operation, response)
    print(f"--- {label}: {summarize(response)}")


def syncToTrakt(
    history: LiberatorHistory,
    traktIO: TraktIO,
    prompt: Callable[[str], None] = promptUser,
) -> SyncReport:
    """
    Submit the export to Trakt, one request after the other.

    1. Read the account tier.
    2. Add the watchlist, unless it exceeds the tier's limit. Then the user is
       told why and has to confirm before the import continues.
    3. Add the watch history.
    4. Hide stopped shows from progress.
    5. Hide the same shows from recommendations.

    A failing request raises RemoteOperationError and the remaining steps do not run.
    """
    report = SyncReport()
    report.vip = traktIO.isVip()

    # Watchlist
    watchlist = buildWatchlist(history.shows, history.movies)
    report.watchlist_shows = len(watchlist.shows)
    report.watchlist_movies = len(watchlist.movies)
    decision = decide(report.vip, len(watchlist.shows), len(watchlist.movies))
    logging.info(f"Watchlist capacity check: {decision}")

    if decision.blocked:
        logVipError(decision)
        prompt(CONTINUE_PROMPT)
    else:
        response = traktIO.addToWatchlist(watchlist)
        report.watchlist_submitted = True
        reportResponse("Imported watchlist", "sync/watchlist", response, report)

    # Watch history
    print("--- Proceeding to import watch history...")
    print("--- This may take a while depending on the size of your watch history...")
    watchHistory = buildHistory(history.shows, history.movies)
    report.history_episodes = countEpisodes(watchHistory)
    report.history_movies = len(watchHistory.movies)
    print(
        f"--- Adding {report.history_episodes} episodes and {report.history_movies} movies to watch history..."
    )
    response = traktIO.addToHistory(watchHistory)
    reportResponse("Imported watch history", "sync/history", response, report)

    # Stopped shows
    hidden = buildHidden(history.shows)
    report.hidden_shows = len(hidden.shows)
    response = traktIO.addToHidden(hidden, HIDDEN_SECTION_PROGRESS)
    reportResponse("Stopped shows hidden from progress", f"users/hidden/{HIDDEN_SECTION_PROGRESS}", response, report)

    response = traktIO.addToHidden(hidden, HIDDEN_SECTION_RECOMMENDATIONS)
    reportResponse(
        "Stopped shows hidden from recommendations",
        f"users/hidden/{HIDDEN_SECTION_RECOMMENDATIONS}",
        response,
        report,
    )
    return report


def main() -> int:
    """Entry point: loads config, reads the export, syncs Trakt"""
    logging.basicConfig(
        filename=config.LOG_FILENAME,
        level=config.LOG_LEVEL,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    print(f"Loading Liberator export from {config.LIBERATOR_EXPORT_PATH}...")
    try:
        history = LiberatorHistory.loadFromDirectory(config.LIBERATOR_EXPORT_PATH)
    except (OSError, LiberatorExportError) as e:
        logging.critical(f"Could not load the Liberator export: {e}")
        print(f"\n[ERROR] Could not load the Liberator export: {e}", file=sys.stderr)
        return 1
    print(f"Found {len(history.shows)} TV shows and {len(history.movies)} movies")

    try:
        init_not_found_file()
        traktIO = TraktIO()
        report = syncToTrakt(history, traktIO)
    except (OSError, RemoteOperationError) as e:
        logging.critical(f"Trakt import aborted: {e}")
        print(f"\n[ERROR] Trakt import aborted: {e}", file=sys.stderr)
        return 1
    except EOFError:
        logging.critical("Watchlist limit notice was not confirmed (no input), import aborted")
        print("\n[ERROR] No confirmation received, import aborted before the watch history.", file=sys.stderr)
        return 1

    print("\nImport summary")
    if report.watchlist_submitted:
        print(f"  Watchlist: {report.watchlist_shows:,} shows, {report.watchlist_movies:,} movies submitted")
    else:
        print("  Watchlist: skipped (limit exceeded)")
    print(f"  History: {report.history_episodes:,} episodes, {report.history_movies:,} movies submitted")
    print(f"  Hidden: {report.hidden_shows:,} stopped shows")
    print("\n[OK] Processing complete. Review the log for detailed entries if needed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
