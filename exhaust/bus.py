"""
Event bus and main loop
=======================
One unbounded channel is shared by every producer: the Presentation layer
(raw keys and resizes) and the EffectRunner (load, save and listing
completions). A single consumer, EventLoop, pulls one event at a time,
runs the reducer and redraws. Only the consumer ever replaces the App
state, so the state needs no locking.

Saves run on their own single worker, so writes to disk happen in the
order they were scheduled and the newest snapshot is the one that ends up
in the file.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent import futures
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, Optional, Set

from exhaust.browse import run_listing
from exhaust.events import (
    Effect,
    Event,
    ListDirectory,
    ListingCompleted,
    LoadCompleted,
    LoadEffect,
    SaveCompleted,
    SaveEffect,
)
from exhaust.persistence import run_load, run_save
from exhaust.reducer import reduce
from exhaust.state import App

logger = logging.getLogger(__name__)

Propagate = Callable[[App, Event], Iterable[Event]]
Render = Callable[[App], None]


class EventBus:
    """Multi-producer single-consumer channel."""

    def __init__(self) -> None:
        self._queue: "queue.Queue[Event]" = queue.Queue()

    def put(self, event: Event) -> None:
        self._queue.put(event)

    def get(self, timeout: Optional[float] = None) -> Event:
        return self._queue.get(timeout=timeout)

    def get_nowait(self) -> Event:
        return self._queue.get_nowait()

    def empty(self) -> bool:
        return self._queue.empty()


def execute(effect: Effect) -> Event:
    """Run one effect to completion on the calling thread."""
    if isinstance(effect, LoadEffect):
        return run_load(effect.path)
    if isinstance(effect, SaveEffect):
        return run_save(effect.path, effect.exam, pretty=effect.pretty)
    if isinstance(effect, ListDirectory):
        return run_listing(effect.directory)
    raise TypeError(f"unknown effect: {effect!r}")


def _failure_event(effect: Effect, exc: BaseException) -> Event:
    message = f"internal error: {exc}"
    if isinstance(effect, LoadEffect):
        return LoadCompleted(path=effect.path, error=message)
    if isinstance(effect, SaveEffect):
        exam = effect.exam
        return SaveCompleted(path=effect.path, revision=exam.revision, session=exam.session, error=message)
    return ListingCompleted(directory=getattr(effect, "directory", ""))


class EffectRunner:
    """Executes effects on worker threads and posts their completion events."""

    def __init__(self, bus: EventBus, max_workers: int = 4) -> None:
        self._bus = bus
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="exhaust-io")
        self._save_pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="exhaust-save")
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()

    def submit(self, effect: Effect) -> Future:
        logger.debug("Scheduling %s", type(effect).__name__)
        pool = self._save_pool if isinstance(effect, SaveEffect) else self._pool
        future = pool.submit(self._run, effect)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _run(self, effect: Effect) -> Event:
        try:
            event = execute(effect)
        except Exception as exc:
            logger.exception("Effect %r failed", effect)
            event = _failure_event(effect, exc)
        self._bus.put(event)
        return event

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for every scheduled effect. Returns False if none were pending."""
        waited = False
        while True:
            with self._lock:
                pending = set(self._pending)
            if not pending:
                return waited
            waited = True
            futures.wait(pending, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)
        self._save_pool.shutdown(wait=wait)


class EventLoop:
    """The single consumer of the bus."""

    def __init__(
        self,
        state: App,
        bus: EventBus,
        runner: EffectRunner,
        propagate: Optional[Propagate] = None,
        on_render: Optional[Render] = None,
    ) -> None:
        self.state = state
        self.bus = bus
        self.runner = runner
        self.propagate = propagate
        self.on_render = on_render

    def start(self) -> None:
        """List the starting directory and draw the first frame."""
        self.runner.submit(ListDirectory(self.state.home.directory))
        self._render()

    def _render(self) -> None:
        if self.on_render is not None:
            self.on_render(self.state)

    def dispatch(self, event: Event) -> None:
        self.state, leftover, effects = reduce(self.state, event)
        for effect in effects:
            self.runner.submit(effect)
        if leftover is not None and self.propagate is not None:
            for follow_up in self.propagate(self.state, leftover):
                self.bus.put(follow_up)
        self._render()

    def run(self) -> App:
        """Block on the bus until the state stops running, then flush pending saves."""
        self.start()
        try:
            while self.state.running:
                self.dispatch(self.bus.get())
        finally:
            self.runner.shutdown(wait=True)
        return self.state

    def run_until_idle(self) -> App:
        """Dispatch until the bus is empty and no effect is in flight."""
        while self.state.running:
            try:
                event = self.bus.get_nowait()
            except queue.Empty:
                if not self.runner.join() and self.bus.empty():
                    break
                continue
            self.dispatch(event)
        return self.state
