"""
Rate limited access to the Trakt endpoints used by the Liberator import.

Every request goes through a single RateLimiter: one request in flight at a
time and a minimum spacing between the start of two requests.
"""

from typing import Callable, Optional

import json
import logging
import os.path
from threading import Condition, Lock
import time
from trakt import Trakt
import config
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)
from requests.exceptions import RequestException  # type: ignore[import]

from TraktPayload import SyncBatch, toWire

HIDDEN_SECTION_PROGRESS = "progress_watched"
HIDDEN_SECTION_RECOMMENDATIONS = "recommendations"
HIDDEN_SECTIONS = (HIDDEN_SECTION_PROGRESS, HIDDEN_SECTION_RECOMMENDATIONS)


class RemoteOperationError(Exception):
    """A Trakt request failed or was rejected."""

    def __init__(self, operation: str, message: str, status_code: Optional[int] = None):
        detail = f"{operation} failed: {message}"
        if status_code is not None:
            detail += f" (HTTP {status_code})"
        super().__init__(detail)
        self.operation = operation
        self.status_code = status_code


class RateLimiter(object):
    """
    Single-flight throttle shared by all Trakt requests of one run.

    ``call`` holds a lock for the whole request, so a second caller waits until
    the first request has returned. Before a request starts, the limiter sleeps
    until ``min_delay`` seconds have passed since the previous request started.
    """

    def __init__(
        self,
        min_delay: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_delay = min_delay
        self._clock = clock
        self._sleep = sleep
        self._lock = Lock()
        self._last_api_call_time: Optional[float] = None

    def call(self, fn, *args, **kwargs):
        with self._lock:
            if self._last_api_call_time is not None:
                time_since_last_call = self._clock() - self._last_api_call_time
                if time_since_last_call < self.min_delay:
                    sleep_time = self.min_delay - time_since_last_call
                    logging.debug(f"Rate limiting: sleeping for {sleep_time:.2f}s")
                    self._sleep(sleep_time)
            self._last_api_call_time = self._clock()
            return fn(*args, **kwargs)


class TraktIO(object):
    """
    Handles Trakt authorization and the requests of the import.

    Features:
    - OAuth device code authentication flow, token cached on disk
    - Automatic token refresh via trakt.py library (refresh enabled on every request)
    - All requests serialized through one RateLimiter
    - Dry run mode that answers with synthetic responses
    """

    def __init__(self, min_delay=None, dry_run=None, verbose=None, limiter: Optional[RateLimiter] = None):
        # Configure Trakt client credentials
        Trakt.configuration.defaults.client(
            id=config.TRAKT_API_CLIENT_ID, secret=config.TRAKT_API_CLIENT_SECRET
        )

        self.authorization = None
        self.dry_run = dry_run if dry_run is not None else config.TRAKT_API_DRY_RUN
        self.verbose = verbose if verbose is not None else config.TRAKT_API_VERBOSE
        self.auth_file = getattr(config, "TRAKT_AUTH_FILE", "traktAuth.json")

        if limiter is None:
            limiter = RateLimiter(min_delay if min_delay is not None else config.TRAKT_API_MIN_DELAY)
        self.limiter = limiter

        self.is_authenticating = Condition()

        # Skip authentication in dry run mode
        if not self.dry_run:
            # Register token refresh handler to persist updated tokens
            Trakt.on("oauth.token_refreshed", self._on_token_refreshed)
            self._initialize_auth()

    def _user_message(self, message: str, level: str = "info"):
        """
        Print a user-facing message and mirror it into the log.

        Args:
            message: The message to display
            level: Logging level ('info', 'warning', 'error', 'critical')
        """
        print(message)
        if self.verbose:
            getattr(logging, level, logging.info)(f"USER: {message}")
        else:
            logging.debug(f"USER ({level.upper()}): {message}")

    def _initialize_auth(self):
        """Load authentication data from file or trigger the device auth flow"""
        if not os.path.isfile(self.auth_file):
            self.authenticate()

        if not os.path.isfile(self.auth_file):
            raise RemoteOperationError("authentication", "no Trakt authorization available")

        with open(self.auth_file) as infile:
            self.authorization = json.load(infile)
        logging.info(f"Loaded Trakt authorization from {self.auth_file}")

    def getSettings(self) -> dict:
        """Fetch the account settings of the authenticated user"""
        if self.dry_run:
            return self.limiter.call(lambda: {"user": {"vip": False}})
        return self._request("users/settings", lambda: Trakt["users/settings"].get())

    def isVip(self) -> bool:
        settings = self.getSettings()
        user = settings.get("user") or {}
        vip = bool(user.get("vip", False))
        logging.info(f"Trakt account tier: {'VIP' if vip else 'FREE'}")
        return vip

    def addToWatchlist(self, batch: SyncBatch) -> dict:
        if self.dry_run:
            return self._dry_run_response(
                {"shows": len(batch.shows), "movies": len(batch.movies)}
            )
        data = toWire(batch.payload())
        return self._request("sync/watchlist", lambda: Trakt["sync/watchlist"].add(data))

    def addToHistory(self, batch: SyncBatch) -> dict:
        if self.dry_run:
            episodes = sum(len(s["episodes"]) for show in batch.shows for s in show["seasons"])
            return self._dry_run_response({"movies": len(batch.movies), "episodes": episodes})
        data = toWire(batch.payload())
        return self._request("sync/history", lambda: Trakt["sync/history"].add(data))

    def addToHidden(self, batch: SyncBatch, section: str) -> dict:
        """
        Hide the shows of ``batch`` in one of the hidden sections of the user.

        :param batch: Shows to hide; movies are ignored
        :param section: ``progress_watched`` or ``recommendations``
        """
        if section not in HIDDEN_SECTIONS:
            raise ValueError(f"Unknown hidden section: {section}")
        if self.dry_run:
            return self._dry_run_response({"shows": len(batch.shows)})

        path = f"users/hidden/{section}"
        data = toWire({"shows": batch.shows})

        def post():
            response = Trakt.http.post(path, data=data, authenticated=True)
            if response is None:
                return None
            if not 200 <= response.status_code < 300:
                raise RemoteOperationError(path, response.text[:500], response.status_code)
            return response.json() if response.content else {}

        return self._request(path, post)

    def _request(self, operation: str, send):
        """Run ``send`` through the rate limiter with the user's token and check the result"""

        def authorized():
            with Trakt.configuration.oauth.from_response(self.authorization, refresh=True):
                return send()

        logging.debug(f"Trakt request: {operation}")
        try:
            response = self.limiter.call(authorized)
        except RequestException as e:
            status_code = getattr(getattr(e, "response", None), "status_code", None)
            logging.error(f"Trakt request {operation} failed: {e}")
            raise RemoteOperationError(operation, str(e), status_code) from e

        if response is None:
            logging.error(f"Trakt request {operation}: no response received")
            raise RemoteOperationError(operation, "no response from Trakt API")

        logging.info(f"Trakt response for {operation}: {json.dumps(response)}")
        return response

    def _dry_run_response(self, added: dict) -> dict:
        logging.info(f"Dry run enabled. Skipping Trakt write, would add {added}")
        return self.limiter.call(lambda: {"added": added, "not_found": {}})

    def _on_token_refreshed(self, authorization):
        """Handle token refresh events from trakt.py"""
        self.authorization = authorization
        with open(self.auth_file, "w") as f:
            json.dump(self.authorization, f)
        logging.info("Trakt token refreshed and saved")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=2, min=2, max=30),
        retry=retry_if_exception_type(RequestException),
        before_sleep=before_sleep_log(logging.getLogger(__name__), logging.WARNING),
        reraise=True,
    )
    def _request_device_code(self) -> dict:
        code_info = Trakt["oauth/device"].code()
        if not code_info:
            raise RemoteOperationError("oauth/device/code", "no device code received")
        return code_info

    def authenticate(self):
        """Handle device authentication flow"""
        if not self.is_authenticating.acquire(blocking=False):
            self._user_message("Authentication has already been started", "warning")
            return False

        code_info = self._request_device_code()

        self._user_message(
            f'Enter the code "{code_info.get("user_code")}" at {code_info.get("verification_url")} to authenticate your Trakt account',
            "info"
        )

        poller = (
            Trakt["oauth/device"]
            .poll(**code_info)
            .on("aborted", self.on_aborted)
            .on("authenticated", self.on_authenticated)
            .on("expired", self.on_expired)
            .on("poll", self.on_poll)
        )

        poller.start(daemon=False)
        return self.is_authenticating.wait()

    def on_aborted(self):
        """Called when user aborts Trakt auth"""
        self._user_message("Authentication aborted", "warning")
        self._notify_auth_complete()

    def on_authenticated(self, authorization):
        """Called when user completes authentication successfully"""
        self.authorization = authorization
        self._user_message("Authentication successful!", "info")
        with open(self.auth_file, "w") as f:
            json.dump(self.authorization, f)
        self._notify_auth_complete()

    def on_expired(self):
        """Called when auth times out or expires"""
        self._user_message("Authentication expired", "warning")
        self._notify_auth_complete()

    def on_poll(self, callback):
        """Called on every poll attempt during auth"""
        callback(True)

    def _notify_auth_complete(self):
        """Notify any threads waiting on authentication that it is complete"""
        self.is_authenticating.acquire()
        self.is_authenticating.notify_all()
        self.is_authenticating.release()
