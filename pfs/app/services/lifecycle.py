import logging
import os
import threading
from enum import Enum
from typing import Callable, Optional

from pfs.logger_config import setup_logger

logger = setup_logger()


class LifecycleState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    TERMINATED = "terminated"


def terminate_process(exit_status: int) -> None:
    """Flush the logs and end the process immediately, without waiting for requests."""
    logging.shutdown()
    os._exit(exit_status)


class LifecycleTimer:
    def __init__(self, timeout_seconds: float, on_expire: Optional[Callable[[int], None]] = None):
        """
        Countdown that ends the process once the timeout elapses.

        Args:
            timeout_seconds: Seconds to wait after start() before terminating
            on_expire: Called with the exit status on expiry. Defaults to terminate_process
        """
        if timeout_seconds <= 0:
            raise ValueError("Timeout must be positive")

        self.timeout_seconds = timeout_seconds
        self._on_expire = on_expire or terminate_process
        self._timer: Optional[threading.Timer] = None
        self._state = LifecycleState.IDLE

    @property
    def state(self) -> LifecycleState:
        return self._state

    def start(self) -> None:
        if self._state is not LifecycleState.IDLE:
            raise RuntimeError("Lifecycle timer can only be started once")

        # Own thread so a busy event loop cannot delay the expiry
        self._timer = threading.Timer(self.timeout_seconds, self._expire)
        self._timer.daemon = True
        self._timer.start()
        self._state = LifecycleState.RUNNING
        logger.debug(f"Lifecycle timer started, expiring in {self.timeout_seconds:.1f}s")

    def _expire(self) -> None:
        logger.info("Fileserver timed out.  Exiting.")
        self._state = LifecycleState.TERMINATED
        self._on_expire(0)
