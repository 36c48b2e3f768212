import os
import socket
import time

import pytest

from sirun.statsd import StatsdListener, parse_statsd


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("SIRUN_STATSD_PORT", raising=False)


def send(port, payload):
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.sendto(payload, ("127.0.0.1", port))


def wait_for_metrics(listener, count):
    collected = {}
    deadline = time.monotonic() + 5
    while len(collected) < count and time.monotonic() < deadline:
        collected.update(listener.take_metrics())
        time.sleep(0.02)
    return collected


def test_parse_statsd_lines():
    text = "max.res.size:1024|g\nuser.time:5|g\nwall.time:12.5|g\n"
    assert parse_statsd(text) == {
        "max.res.size": 1024.0,
        "user.time": 5.0,
        "wall.time": 12.5,
    }


def test_parse_statsd_keeps_order():
    text = "b:1|g\na:2|g\nc:3|g"
    assert list(parse_statsd(text)) == ["b", "a", "c"]


def test_parse_statsd_skips_lines_without_value():
    assert parse_statsd("garbage\nudp.data:8125|g\n\n") == {"udp.data": 8125.0}


def test_parse_statsd_empty():
    assert parse_statsd("") == {}


def test_parse_statsd_later_value_wins():
    assert parse_statsd("x:1|g\nx:2|g") == {"x": 2.0}


def test_parse_statsd_bad_number():
    with pytest.raises(ValueError):
        parse_statsd("x:abc|g")


def test_listener_collects_and_clears():
    with StatsdListener(0) as listener:
        assert os.environ["SIRUN_STATSD_PORT"] == str(listener.port)
        send(listener.port, b"user.time:42|g\nsystem.time:7|g\n")
        metrics = wait_for_metrics(listener, 2)
        assert metrics == {"user.time": 42.0, "system.time": 7.0}
        assert listener.take_metrics() == {}


def test_listener_ignores_invalid_utf8():
    with StatsdListener(0) as listener:
        send(listener.port, b"\xff\xfe:1|g")
        send(listener.port, b"ok:3|g\n")
        metrics = wait_for_metrics(listener, 1)
        assert metrics == {"ok": 3.0}


def test_listener_port_from_env(monkeypatch):
    monkeypatch.setenv("SIRUN_STATSD_PORT", "not-a-port")
    listener = StatsdListener()
    assert listener.port == 0
    with listener:
        assert listener.port > 0
        assert os.environ["SIRUN_STATSD_PORT"] == str(listener.port)


def test_listener_bind_conflict():
    with StatsdListener(0) as first:
        second = StatsdListener(first.port)
        with pytest.raises(OSError, match="Cannot bind"):
            second.start()