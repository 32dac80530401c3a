"""
Tests for the WaitGroup join counter the supervisor uses to close the
fan-in queue once every worker has returned.
"""

import threading
import time
from pathlib import Path

import pytest
import sys

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from crawler.waitgroup import WaitGroup


# ──────────────────────────────────────────────
# WaitGroup
# ──────────────────────────────────────────────

class TestWaitGroup:
    def test_wait_on_zero_returns_immediately(self):
        wg = WaitGroup()
        assert wg.wait(timeout=0.1) is True

    def test_wait_blocks_until_all_done(self):
        wg = WaitGroup()
        wg.add(3)
        released = threading.Event()

        def waiter():
            wg.wait()
            released.set()

        t = threading.Thread(target=waiter)
        t.start()

        wg.done()
        wg.done()
        assert not released.wait(timeout=0.1)
        assert wg.count == 1

        wg.done()
        assert released.wait(timeout=2)
        t.join()

    def test_wait_timeout(self):
        wg = WaitGroup()
        wg.add()
        assert wg.wait(timeout=0.05) is False

    def test_negative_counter_raises(self):
        wg = WaitGroup()
        with pytest.raises(ValueError):
            wg.done()

    def test_done_from_many_threads(self):
        wg = WaitGroup()
        n = 20
        wg.add(n)

        def work():
            time.sleep(0.01)
            wg.done()

        for _ in range(n):
            threading.Thread(target=work).start()

        assert wg.wait(timeout=5)
        assert wg.count == 0
