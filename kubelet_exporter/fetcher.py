from __future__ import annotations
import logging
import threading
import time
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from typing import Optional

import requests

from kubelet_exporter.errors import (
    FetchBodyReadError,
    FetchTimeoutError,
    FetchTransportError,
)

_logger = logging.getLogger(__name__)

# Deadline for a single summary fetch, name resolution, connection and body included
FETCH_TIMEOUT_SECONDS = 60.0
CHUNK_SIZE = 64 * 1024


class _Transfer:
    """The response of one in-flight fetch, closed from the caller's thread once the deadline fires."""

    def __init__(self):
        self.lock = threading.Lock()
        self.response: Optional[requests.Response] = None
        self.cancelled = False

    def attach(self, response: requests.Response) -> bool:
        with self.lock:
            if self.cancelled:
                response.close()
                return False
            self.response = response
            return True

    def cancel(self):
        with self.lock:
            self.cancelled = True
            response = self.response
        if response is not None:
            response.close()


class SummaryFetcher:
    """
    Fetches the raw kubelet stats summary with a single time bounded GET.

    The request runs on a worker thread so the deadline holds even while name
    resolution, connecting or a trickling body read is blocked. When it fires
    the response is closed and fetch() returns right away.

    The session is shared by concurrent scrapes; fetch() only issues requests
    through it and never changes its state.
    """

    url: str
    session: requests.Session
    headers: dict[str, str]
    verify: bool
    timeout: float

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        headers: Optional[dict[str, str]] = None,
        verify: bool = True,
        timeout: float = FETCH_TIMEOUT_SECONDS,
    ):
        self.url = url
        self.session = session if session is not None else requests.Session()
        self.headers = {"Accept": "application/json"}
        self.headers.update(headers or {})
        self.verify = verify
        self.timeout = timeout

    def _check_deadline(self, deadline: float) -> float:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise FetchTimeoutError(
                self.url, f"deadline of {self.timeout:g}s exceeded"
            )
        return remaining

    def _download(self, transfer: _Transfer, deadline: float) -> bytes:
        remaining = self._check_deadline(deadline)
        try:
            response = self.session.get(
                self.url,
                headers=self.headers,
                verify=self.verify,
                stream=True,
                timeout=(remaining, remaining),
            )
        except requests.Timeout as e:
            raise FetchTimeoutError(self.url, e) from e
        except requests.RequestException as e:
            raise FetchTransportError(self.url, e) from e

        if not transfer.attach(response):
            raise FetchTimeoutError(self.url, f"deadline of {self.timeout:g}s exceeded")

        with response:
            if not response.ok:
                _logger.debug(
                    f"Kubelet at {self.url} responded with status {response.status_code}, reading body anyway"
                )
            body = bytearray()
            try:
                self._check_deadline(deadline)
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    body.extend(chunk)
                    self._check_deadline(deadline)
            except (requests.RequestException, OSError, ValueError, AttributeError) as e:
                # reads on a response closed by cancel() fail with arbitrary errors
                if transfer.cancelled or isinstance(e, requests.Timeout) or time.monotonic() >= deadline:
                    raise FetchTimeoutError(self.url, e) from e
                raise FetchBodyReadError(self.url, e) from e

        if transfer.cancelled:
            raise FetchTimeoutError(self.url, f"deadline of {self.timeout:g}s exceeded")
        return bytes(body)

    def fetch(self) -> bytes:
        """
        Return the response body of GET <url>.

        Raises FetchTimeoutError when the deadline elapses, FetchTransportError
        when no response could be obtained and FetchBodyReadError when the body
        could not be read. The status code is not checked.
        """
        deadline = time.monotonic() + self.timeout
        transfer = _Transfer()
        result: Future = Future()

        def run():
            try:
                result.set_result(self._download(transfer, deadline))
            except Exception as e:
                result.set_exception(e)

        threading.Thread(target=run, name="summary-fetch", daemon=True).start()
        try:
            return result.result(timeout=max(deadline - time.monotonic(), 0))
        except FutureTimeoutError as e:
            transfer.cancel()
            raise FetchTimeoutError(
                self.url, f"deadline of {self.timeout:g}s exceeded"
            ) from e
