"""
Cooperative frame scheduler driving per-refresh work and delayed callbacks.

Everything runs on the caller's thread: the window loop calls
``run_frame()`` once per display refresh, and the scheduler dispatches
due timers followed by the registered frame tasks.
"""

import heapq
import itertools
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple


class TaskHandle:
    """
    Cancellable registration returned by the scheduler.
    """

    def __init__(self, handle_id: int, callback: Callable, repeating: bool = False):
        self.handle_id = handle_id
        self.callback = callback
        self.repeating = repeating
        self.cancelled = False
        self.run_count = 0

    def cancel(self):
        """Prevent any further execution of this task"""
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not self.cancelled

    def __repr__(self) -> str:
        kind = "repeating" if self.repeating else "once"
        state = "cancelled" if self.cancelled else "active"
        return f"TaskHandle(id={self.handle_id}, {kind}, {state}, runs={self.run_count})"


class FrameScheduler:
    """
    Single-threaded replacement for a display-refresh callback queue plus
    timers.

    Frame tasks receive the refresh timestamp (seconds). A task registered
    while a refresh is running is first executed on the following refresh,
    so ticks never overlap and never run twice in one refresh.
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter):
        self.clock = clock
        self.logger = logging.getLogger(__name__)
        self._ids = itertools.count(1)
        self._frame_tasks: Dict[int, TaskHandle] = {}
        self._timers: List[Tuple[float, int, TaskHandle]] = []
        self.frame_count = 0
        self.closed = False

    def request_frame(self, callback: Callable[[float], None]) -> TaskHandle:
        """Run callback once, on the next refresh"""
        return self._add_frame_task(callback, repeating=False)

    def every_frame(self, callback: Callable[[float], None]) -> TaskHandle:
        """
        Run callback on every refresh until its handle is cancelled.

        Args:
            callback: Called with the refresh timestamp

        Returns:
            Handle used to stop the task
        """
        return self._add_frame_task(callback, repeating=True)

    def call_later(self, delay: float, callback: Callable[[], None]) -> TaskHandle:
        """
        Run callback once, on the first refresh at or after ``delay`` seconds.
        """
        if delay < 0:
            raise ValueError(f"Delay must be non-negative, got {delay}")
        if self.closed:
            raise RuntimeError("Scheduler is closed")

        handle = TaskHandle(next(self._ids), callback)
        heapq.heappush(self._timers, (self.clock() + delay, handle.handle_id, handle))
        return handle

    def cancel(self, handle: Optional[TaskHandle]):
        """Cancel a handle; None and already-finished handles are ignored"""
        if handle is None:
            return
        handle.cancel()
        self._frame_tasks.pop(handle.handle_id, None)

    def run_frame(self, now: Optional[float] = None) -> int:
        """
        Execute one display refresh.

        Args:
            now: Refresh timestamp, defaults to the scheduler clock

        Returns:
            Number of callbacks executed
        """
        if self.closed:
            return 0

        if now is None:
            now = self.clock()

        executed = 0

        # Snapshot before timers so tasks added during this refresh, by timers
        # or by other tasks, wait for the next one
        frame_tasks = list(self._frame_tasks.values())

        # Timers first, in due order
        while self._timers and self._timers[0][0] <= now:
            _, _, handle = heapq.heappop(self._timers)
            if handle.cancelled:
                continue
            handle.cancelled = True
            handle.run_count += 1
            handle.callback()
            executed += 1

        for handle in frame_tasks:
            if handle.cancelled:
                self._frame_tasks.pop(handle.handle_id, None)
                continue
            if not handle.repeating:
                self._frame_tasks.pop(handle.handle_id, None)
                handle.cancelled = True
            handle.run_count += 1
            handle.callback(now)
            executed += 1

        self.frame_count += 1
        return executed

    def pending_frame_tasks(self) -> int:
        return sum(1 for h in self._frame_tasks.values() if not h.cancelled)

    def pending_timers(self) -> int:
        return sum(1 for _, _, h in self._timers if not h.cancelled)

    def close(self):
        """Cancel every pending task and timer"""
        for handle in self._frame_tasks.values():
            handle.cancel()
        for _, _, handle in self._timers:
            handle.cancel()
        self._frame_tasks.clear()
        self._timers.clear()
        self.closed = True
        self.logger.debug(f"Scheduler closed after {self.frame_count} frames")

    def _add_frame_task(self, callback: Callable[[float], None], repeating: bool) -> TaskHandle:
        if self.closed:
            raise RuntimeError("Scheduler is closed")
        handle = TaskHandle(next(self._ids), callback, repeating=repeating)
        self._frame_tasks[handle.handle_id] = handle
        return handle
