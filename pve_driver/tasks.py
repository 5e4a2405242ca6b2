import logging
import threading
import time

from .exceptions import TaskTimeoutError

logger = logging.getLogger(__name__)


class Clock:
    """
    Monotonic time source used by the task poller.

    sleep() is a bounded wait on an event, so it never blocks past the requested
    duration. cancel() ends the current and every later sleep immediately.
    """

    def __init__(self):
        self._event = threading.Event()

    def now(self):
        return time.monotonic()

    def sleep(self, seconds):
        self._event.wait(seconds)

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self):
        return self._event.is_set()


class TaskPoller:
    """
    Blocks until a Proxmox task finishes or the task timeout elapses.

    The status callable receives (upid, node) and returns the task exit status, or
    None while the task is still running.
    """

    def __init__(self, get_exit_status, timeout=60, interval=2, clock=None):
        """
        :param get_exit_status: Callable returning the exit status or None
        :param timeout: Task timeout in seconds
        :param interval: Seconds between two status checks
        :param clock: Optional Clock, mainly for tests
        """
        self.get_exit_status = get_exit_status
        self.timeout = timeout
        self.interval = interval
        self.clock = clock or Clock()

    def wait_for_completion(self, upid, node, timeout_message=''):
        """
        Poll a node task until it exits.

        :param upid: Unique Process ID of the task
        :param node: Node running the task
        :param timeout_message: Message of the TaskTimeoutError raised on timeout
        :return: The exit status, as reported by the server
        """
        start_time = self.clock.now()
        max_checks = int(self.timeout // self.interval) + 1
        checks = 0
        while checks < max_checks:
            exit_status = self.get_exit_status(upid, node)
            checks += 1
            if exit_status is not None:
                if exit_status == 'OK':
                    logger.info(f"Task {upid} completed successfully")
                else:
                    logger.warning(f"Task {upid} exited with status: {exit_status}")
                return exit_status
            elapsed = self.clock.now() - start_time
            # the next sleep must not end past the timeout
            if checks == max_checks or elapsed + self.interval > self.timeout:
                break
            logger.debug(f"Task {upid} still running...")
            self.clock.sleep(self.interval)
        logger.error(f"Task {upid} timed out after {self.timeout} seconds ({checks} status checks)")
        raise TaskTimeoutError(timeout_message, upid=upid)
