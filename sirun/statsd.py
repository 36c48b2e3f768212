"""A minimal statsd UDP listener used to collect metrics from test runs."""

from __future__ import annotations

import os
import socket
import threading

_DATAGRAM_SIZE = 4096
_POLL_INTERVAL = 0.1


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ValueError(f"invalid metric value: {text!r}")
    return float(text)


def parse_statsd(text: str) -> dict[str, float]:
    """Parse statsd lines of the form ``name:value|type`` into a dict."""
    metrics: dict[str, float] = {}
    for line in text.strip().split("\n"):
        line = line.removesuffix("\r")
        parts = line.split("|", 1)[0].split(":")
        if len(parts) < 2:
            continue
        metrics[parts[0]] = _parse_float(parts[1])
    return metrics


def _port_from_env() -> int:
    try:
        port = int(os.environ.get("SIRUN_STATSD_PORT", "0"))
    except ValueError:
        return 0
    return port if 0 <= port <= 0xFFFF else 0


class StatsdListener:
    """Collects statsd datagrams on 127.0.0.1 in a background thread."""

    def __init__(self, port: int | None = None) -> None:
        self.port = _port_from_env() if port is None else port
        self._buffer: list[str] = []
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._socket: socket.socket | None = None
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Bind the socket, publish its port and begin receiving."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind(("127.0.0.1", self.port))
        except OSError as exc:
            sock.close()
            raise OSError(f"Cannot bind to 127.0.0.1:{self.port}: {exc}") from exc
        sock.settimeout(_POLL_INTERVAL)
        self._socket = sock
        self.port = sock.getsockname()[1]
        os.environ["SIRUN_STATSD_PORT"] = str(self.port)
        self._stop.clear()
        self._thread = threading.Thread(target=self._receive, daemon=True)
        self._thread.start()

    def _receive(self) -> None:
        assert self._socket is not None
        while not self._stop.is_set():
            try:
                data, _peer = self._socket.recvfrom(_DATAGRAM_SIZE)
            except socket.timeout:
                continue
            except OSError:
                break
            try:
                datum = data.decode("utf-8")
            except UnicodeDecodeError:
                datum = ""
            with self._lock:
                self._buffer.append(datum)

    def close(self) -> None:
        """Stop receiving and release the socket."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def take_metrics(self) -> dict[str, float]:
        """Parse and clear everything received so far."""
        with self._lock:
            text = "".join(self._buffer)
            self._buffer.clear()
        return parse_statsd(text)

    def __enter__(self) -> StatsdListener:
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.close()