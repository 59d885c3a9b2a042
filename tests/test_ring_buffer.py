"""Tests for the bounded, drop-oldest ring buffer."""

import threading
import time

import pytest

from nmeaview.core.ring_buffer import RingBuffer


def test_fifo_order():
    rb = RingBuffer(maxsize=10)
    for i in range(3):
        rb.put(i)
    assert [rb.get(block=False) for _ in range(3)] == [0, 1, 2]
    assert rb.get(block=False) is None


def test_full_buffer_drops_oldest():
    rb = RingBuffer(maxsize=3)
    for i in range(5):
        assert rb.put(i)
    assert rb.qsize() == 3
    assert rb.dropped == 2
    assert rb.drain() == [2, 3, 4]
    assert rb.empty()


def test_get_timeout_returns_none():
    rb = RingBuffer()
    start = time.monotonic()
    assert rb.get(timeout=0.05) is None
    assert time.monotonic() - start >= 0.04


def test_close_wakes_blocked_consumer():
    rb = RingBuffer()
    result = []

    t = threading.Thread(target=lambda: result.append(rb.get()))
    t.start()
    time.sleep(0.05)
    rb.close()
    t.join(timeout=1.0)

    assert not t.is_alive()
    assert result == [None]


def test_closed_buffer_rejects_put_but_drains():
    rb = RingBuffer()
    rb.put("a")
    rb.close()
    assert rb.put("b") is False
    assert rb.get() == "a"
    assert rb.get() is None


def test_blocked_consumer_receives_item():
    rb = RingBuffer()
    result = []
    t = threading.Thread(target=lambda: result.append(rb.get(timeout=1.0)))
    t.start()
    rb.put("$GPGGA")
    t.join(timeout=1.0)
    assert result == ["$GPGGA"]


def test_clear():
    rb = RingBuffer()
    rb.put(1)
    rb.clear()
    assert rb.empty()


def test_invalid_size():
    with pytest.raises(ValueError):
        RingBuffer(maxsize=0)
