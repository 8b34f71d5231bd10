import threading

import pytest

from pfs.app.services.lifecycle import LifecycleState, LifecycleTimer


def test_timer_expires_with_status_zero():
    expired = threading.Event()
    statuses = []

    def on_expire(status):
        statuses.append(status)
        expired.set()

    timer = LifecycleTimer(0.05, on_expire=on_expire)
    assert timer.state is LifecycleState.IDLE

    timer.start()
    assert timer.state in (LifecycleState.RUNNING, LifecycleState.TERMINATED)

    assert expired.wait(5)
    assert statuses == [0]
    assert timer.state is LifecycleState.TERMINATED


def test_timer_does_not_fire_early():
    expired = threading.Event()
    timer = LifecycleTimer(60, on_expire=lambda status: expired.set())
    timer.start()

    assert not expired.wait(0.1)
    assert timer.state is LifecycleState.RUNNING


def test_timer_starts_only_once():
    timer = LifecycleTimer(60, on_expire=lambda status: None)
    timer.start()
    with pytest.raises(RuntimeError):
        timer.start()


@pytest.mark.parametrize("timeout", [0, -1])
def test_timer_rejects_non_positive_timeout(timeout):
    with pytest.raises(ValueError):
        LifecycleTimer(timeout)
