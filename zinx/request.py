"""Requests passed through routers and worker queues."""

from __future__ import annotations

import enum
import threading
from typing import Any, Callable, Sequence

from zinx.message import Message


class HandleStep(enum.IntEnum):
    """The stages a classic router runs through for one request."""

    PRE_HANDLE = 0
    HANDLE = 1
    POST_HANDLE = 2
    HANDLE_OVER = 3


class Request:
    """A message received on a connection, with its routing state.

    ``router_slices_mode`` selects whether :meth:`abort` stops a chain of
    handler functions or the stages of a classic router.
    """

    def __init__(self, conn: Any, msg: Message, router_slices_mode: bool = False) -> None:
        self.connection = conn
        self.message = msg
        self.router_slices_mode = router_slices_mode
        self.response: Any = None
        self._router: Any = None
        self._step = HandleStep.PRE_HANDLE
        self._step_lock = threading.Lock()
        self._need_next = True
        self._handlers: list[Callable[[Request], None]] = []
        self._index = -1

    @property
    def data(self) -> bytes:
        return self.message.data

    @property
    def msg_id(self) -> int:
        return self.message.msg_id

    @property
    def step(self) -> HandleStep:
        return self._step

    def bind_router(self, router: Any) -> None:
        self._router = router

    def _next(self) -> None:
        if not self._need_next:
            self._need_next = True
            return
        with self._step_lock:
            self._step = HandleStep(min(self._step + 1, HandleStep.HANDLE_OVER))

    def goto(self, step: HandleStep) -> None:
        """Jump to ``step`` as the next stage to run."""
        with self._step_lock:
            self._step = HandleStep(step)
            self._need_next = False

    def call(self) -> None:
        """Run the bound router's pre-handle, handle and post-handle stages."""
        if self._router is None:
            return
        while self._step < HandleStep.HANDLE_OVER:
            if self._step is HandleStep.PRE_HANDLE:
                self._router.pre_handle(self)
            elif self._step is HandleStep.HANDLE:
                self._router.handle(self)
            elif self._step is HandleStep.POST_HANDLE:
                self._router.post_handle(self)
            self._next()
        self._step = HandleStep.PRE_HANDLE

    def abort(self) -> None:
        """Stop running any further handlers or stages for this request."""
        if self.router_slices_mode:
            self._index = len(self._handlers)
        else:
            with self._step_lock:
                self._step = HandleStep.HANDLE_OVER

    def bind_router_slices(self, handlers: Sequence[Callable[[Request], None]]) -> None:
        self._handlers = list(handlers)

    def router_slices_next(self) -> None:
        """Run the remaining handler functions in order."""
        self._index += 1
        while self._index < len(self._handlers):
            self._handlers[self._index](self)
            self._index += 1


class FuncRequest:
    """A request that carries a function to run on a connection's worker."""

    def __init__(self, conn: Any, func: Callable[[], Any] | None) -> None:
        self.connection = conn
        self._func = func

    def call_func(self) -> None:
        if self._func is not None:
            self._func()