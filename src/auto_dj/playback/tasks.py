"""Deferred tasks with deadlines and cancel handles.

Timers (sleep deadline, position polling) are expressed as tasks so they can run
on real threads in production and on a virtual clock in tests.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Protocol

from auto_dj.playback.clock import Clock, ManualClock, MonotonicClock

logger = logging.getLogger(__name__)

TaskCallback = Callable[[], None]


@dataclass(slots=True, eq=False)
class ScheduledTask:
    name: str
    deadline: float
    callback: TaskCallback
    _cancelled: bool = field(default=False, repr=False)
    _done: bool = field(default=False, repr=False)
    _on_cancel: Callable[[], None] | None = field(default=None, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def active(self) -> bool:
        with self._lock:
            return not (self._cancelled or self._done)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> bool:
        with self._lock:
            if self._cancelled or self._done:
                return False
            self._cancelled = True
            hook = self._on_cancel
        if hook is not None:
            hook()
        return True

    def run(self) -> bool:
        with self._lock:
            if self._cancelled or self._done:
                return False
            self._done = True
        self.callback()
        return True


class TaskScheduler(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay_sec: float, callback: TaskCallback, name: str = "") -> ScheduledTask: ...


class ThreadingTaskScheduler:
    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or MonotonicClock()

    def now(self) -> float:
        return self._clock.now()

    def call_later(self, delay_sec: float, callback: TaskCallback, name: str = "") -> ScheduledTask:
        delay = max(delay_sec, 0.0)
        task = ScheduledTask(name=name, deadline=self._clock.now() + delay, callback=callback)
        timer = threading.Timer(delay, self._run, args=(task,))
        timer.daemon = True
        if name:
            timer.name = f"auto-dj-{name}"
        task._on_cancel = timer.cancel
        timer.start()
        return task

    @staticmethod
    def _run(task: ScheduledTask) -> None:
        try:
            task.run()
        except Exception:
            logger.exception("scheduled task %r failed", task.name)


class VirtualTaskScheduler:
    """Runs tasks only when :meth:`advance` moves the manual clock past them."""

    def __init__(self, clock: ManualClock | None = None) -> None:
        self.clock = clock or ManualClock()
        self._queue: list[tuple[float, int, ScheduledTask]] = []
        self._sequence = itertools.count()
        self._lock = threading.Lock()

    def now(self) -> float:
        return self.clock.now()

    def call_later(self, delay_sec: float, callback: TaskCallback, name: str = "") -> ScheduledTask:
        task = ScheduledTask(name=name, deadline=self.clock.now() + max(delay_sec, 0.0), callback=callback)
        with self._lock:
            heapq.heappush(self._queue, (task.deadline, next(self._sequence), task))
        return task

    def pending(self) -> list[ScheduledTask]:
        with self._lock:
            return [task for _, _, task in sorted(self._queue) if task.active]

    def advance(self, seconds: float) -> int:
        """Move time forward, firing due tasks in deadline order. Returns the count fired."""
        if seconds < 0.0:
            raise ValueError("cannot advance by a negative amount")
        target = self.clock.now() + seconds
        fired = 0
        while True:
            task = self._pop_due(target)
            if task is None:
                break
            if task.deadline > self.clock.now():
                self.clock.set(task.deadline)
            if task.run():
                fired += 1
        self.clock.set(max(target, self.clock.now()))
        return fired

    def _pop_due(self, target: float) -> ScheduledTask | None:
        with self._lock:
            while self._queue:
                deadline, _, task = self._queue[0]
                if deadline > target:
                    return None
                heapq.heappop(self._queue)
                if task.active:
                    return task
            return None
