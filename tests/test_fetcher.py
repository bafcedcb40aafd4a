import socket
import threading
import time

import pytest
import requests

from kubelet_exporter.errors import (
    FetchBodyReadError,
    FetchError,
    FetchTimeoutError,
    FetchTransportError,
)
from kubelet_exporter.fetcher import FETCH_TIMEOUT_SECONDS, SummaryFetcher

URL = "http://10.0.0.1:10255/stats/summary"


class FakeResponse:
    def __init__(self, chunks=(), status_code=200, error=None):
        self.chunks = list(chunks)
        self.status_code = status_code
        self.error = error
        self.closed = False

    @property
    def ok(self):
        return self.status_code < 400

    def iter_content(self, chunk_size=1):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self):
        self.closed = True



class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def test_fetch_returns_body():
    response = FakeResponse([b'{"pods":', b" []}"])
    session = FakeSession(response)

    body = SummaryFetcher(URL, session=session).fetch()

    assert body == b'{"pods": []}'
    assert response.closed
    url, kwargs = session.calls[0]
    assert url == URL
    connect_timeout, read_timeout = kwargs["timeout"]
    assert 0 < connect_timeout <= FETCH_TIMEOUT_SECONDS
    assert 0 < read_timeout <= FETCH_TIMEOUT_SECONDS
    assert kwargs["stream"] is True
    assert kwargs["verify"] is True
    assert kwargs["headers"]["Accept"] == "application/json"


def test_fetch_sends_configured_headers_and_verify():
    session = FakeSession(FakeResponse([b"{}"]))

    SummaryFetcher(URL, session=session, headers={"Authorization": "bearer abc"}, verify=False).fetch()

    _, kwargs = session.calls[0]
    assert kwargs["headers"]["Authorization"] == "bearer abc"
    assert kwargs["verify"] is False


def test_fetch_does_not_retry():
    session = FakeSession(error=requests.ConnectionError("connection refused"))

    with pytest.raises(FetchTransportError):
        SummaryFetcher(URL, session=session).fetch()
    assert len(session.calls) == 1


def test_non_2xx_body_is_still_returned():
    session = FakeSession(FakeResponse([b"Unauthorized"], status_code=401))
    assert SummaryFetcher(URL, session=session).fetch() == b"Unauthorized"


@pytest.mark.parametrize(
    "error",
    [
        requests.ConnectionError("connection refused"),
        requests.exceptions.InvalidURL("bad url"),
        requests.exceptions.SSLError("certificate verify failed"),
    ],
)
def test_transport_errors(error):
    with pytest.raises(FetchTransportError) as excinfo:
        SummaryFetcher(URL, session=FakeSession(error=error)).fetch()
    assert excinfo.value.url == URL
    assert excinfo.value.cause is error


@pytest.mark.parametrize("error", [requests.ConnectTimeout("connect"), requests.ReadTimeout("read")])
def test_request_timeout(error):
    with pytest.raises(FetchTimeoutError) as excinfo:
        SummaryFetcher(URL, session=FakeSession(error=error)).fetch()
    assert isinstance(excinfo.value, FetchError)
    assert URL in str(excinfo.value)


def test_body_read_error():
    response = FakeResponse([b'{"pods"'], error=requests.exceptions.ChunkedEncodingError("connection broken"))

    with pytest.raises(FetchBodyReadError):
        SummaryFetcher(URL, session=FakeSession(response)).fetch()
    assert response.closed


class SlowKubelet:
    """
    Local HTTP server that answers one request slowly: it waits header_delay
    seconds before the status line, then trickles the body one byte at a time.
    """

    def __init__(self, header_delay=0.0, byte_interval=0.1, body=b"x" * 100):
        self.header_delay = header_delay
        self.byte_interval = byte_interval
        self.body = body
        self.stopped = threading.Event()
        self.listener = socket.create_server(("127.0.0.1", 0))
        self.url = f"http://127.0.0.1:{self.listener.getsockname()[1]}/stats/summary"
        self.thread = threading.Thread(target=self.serve, daemon=True)
        self.thread.start()

    def serve(self):
        try:
            conn, _ = self.listener.accept()
        except OSError:
            return
        with conn:
            try:
                conn.recv(65536)
                if self.stopped.wait(self.header_delay):
                    return
                conn.sendall(
                    b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
                    + f"Content-Length: {len(self.body)}\r\n\r\n".encode()
                )
                for i in range(len(self.body)):
                    if self.stopped.wait(self.byte_interval):
                        return
                    conn.sendall(self.body[i:i + 1])
            except OSError:
                return

    def stop(self):
        self.stopped.set()
        self.listener.close()


def local_session():
    session = requests.Session()
    # ignore any HTTP(S)_PROXY of the environment
    session.trust_env = False
    return session


@pytest.fixture
def slow_kubelet():
    servers = []

    def start(**kwargs):
        server = SlowKubelet(**kwargs)
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.stop()


def test_trickling_body_is_cut_off_at_deadline(slow_kubelet):
    server = slow_kubelet(byte_interval=0.1)

    started = time.monotonic()
    with pytest.raises(FetchTimeoutError) as excinfo:
        SummaryFetcher(server.url, session=local_session(), timeout=1.0).fetch()
    elapsed = time.monotonic() - started

    assert elapsed <= 1.0 + 0.5
    assert excinfo.value.url == server.url


def test_slow_response_headers_are_cut_off_at_deadline(slow_kubelet):
    server = slow_kubelet(header_delay=10.0)

    started = time.monotonic()
    with pytest.raises(FetchTimeoutError):
        SummaryFetcher(server.url, session=local_session(), timeout=1.0).fetch()
    assert time.monotonic() - started <= 1.0 + 0.5


def test_fast_local_kubelet_within_deadline(slow_kubelet):
    server = slow_kubelet(byte_interval=0.0, body=b'{"pods": []}')

    assert SummaryFetcher(server.url, session=local_session(), timeout=5.0).fetch() == b'{"pods": []}'
