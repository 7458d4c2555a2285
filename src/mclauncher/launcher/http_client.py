from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from mclauncher.common.config import RuntimeConfig
from mclauncher.common.errors import IntegrityError, ParseError, TransportError
from mclauncher.common.hashing import sha1_hex, verify_sha1


log = logging.getLogger(__name__)


def build_session(runtime: RuntimeConfig) -> requests.Session:
    session = requests.Session()
    session.headers["User-Agent"] = runtime.user_agent
    # Attempts are counted by VerifiedFetcher, so the adapter must not retry on its own.
    retry = Retry(total=0, connect=0, read=0, status=0, raise_on_status=False)
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class VerifiedFetcher:
    def __init__(
        self,
        session: requests.Session,
        runtime: RuntimeConfig,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session = session
        self.runtime = runtime
        self._sleep = sleep

    @property
    def _timeout(self) -> tuple[int, int]:
        return (self.runtime.connect_timeout_seconds, self.runtime.read_timeout_seconds)

    def _get(self, url: str) -> bytes:
        log.debug("GET %s", url)
        resp = self.session.get(url, timeout=self._timeout)
        try:
            resp.raise_for_status()
            return resp.content
        finally:
            resp.close()

    def get_bytes(self, url: str) -> bytes:
        try:
            return self._get(url)
        except requests.RequestException as exc:
            raise TransportError(url, 1, str(exc)) from exc

    def get_json(self, url: str) -> Any:
        body = self.get_bytes(url)
        try:
            return json.loads(body.decode("utf-8-sig"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise ParseError(f"Response from {url} is not valid JSON: {exc}") from exc

    def fetch_verified(self, url: str, expected_sha1: str, max_attempts: int | None = None) -> bytes:
        """GET ``url`` until its body hashes to ``expected_sha1``.

        A connection error, an HTTP error status and a digest mismatch each
        use up one attempt. Only running out of attempts is fatal: the
        result is IntegrityError when the last attempt delivered wrong
        bytes, TransportError otherwise.
        """
        attempts = max(1, int(max_attempts if max_attempts is not None else self.runtime.max_attempts))
        last_reason = ""
        last_was_mismatch = False

        for attempt in range(1, attempts + 1):
            try:
                body = self._get(url)
            except requests.RequestException as exc:
                last_reason = str(exc)
                last_was_mismatch = False
            else:
                if verify_sha1(body, expected_sha1):
                    return body
                last_reason = f"sha1 mismatch: {sha1_hex(body)} != {expected_sha1}"
                last_was_mismatch = True

            if attempt < attempts:
                log.warning("Attempt %d/%d for %s failed (%s), retrying", attempt, attempts, url, last_reason)
                delay = self.runtime.retry_backoff_seconds * attempt
                if delay > 0:
                    self._sleep(delay)

        log.error("Giving up on %s after %d attempt(s): %s", url, attempts, last_reason)
        if last_was_mismatch:
            raise IntegrityError(url, attempts, last_reason)
        raise TransportError(url, attempts, last_reason)
