"""Classic routers and handler-chain routing with groups."""

from __future__ import annotations

import logging
import os
import threading
import time
import traceback
from typing import Any, Callable

logger = logging.getLogger(__name__)

RouterHandler = Callable[[Any], None]

STACK_DEPTH = 3


class RepeatedRouteError(ValueError):
    """Raised when handlers are registered twice for the same message id."""


class BaseRouter:
    """A router whose stages pass the request through untouched.

    Subclasses override the stages they need.
    """

    def pre_handle(self, request: Any) -> Any:
        """Default pre-processing stage: hand the request back unchanged."""
        return request

    def handle(self, request: Any) -> Any:
        """Default processing stage: hand the request back unchanged."""
        return request

    def post_handle(self, request: Any) -> Any:
        """Default post-processing stage: hand the request back unchanged."""
        return request


class RouterSlices:
    """Maps message ids to chains of handler functions.

    Handlers added with :meth:`use` are placed in front of every chain
    registered afterwards.
    """

    def __init__(self) -> None:
        self.apis: dict[int, list[RouterHandler]] = {}
        self.handlers: list[RouterHandler] = []
        self._lock = threading.RLock()

    def use(self, *handlers: RouterHandler) -> None:
        self.handlers.extend(handlers)

    def add_handler(self, msg_id: int, *handlers: RouterHandler) -> None:
        """Register ``handlers`` for ``msg_id`` after the shared ones."""
        with self._lock:
            if msg_id in self.apis:
                raise RepeatedRouteError(f"repeated api , msgId = {msg_id}")
            self.apis[msg_id] = [*self.handlers, *handlers]

    def get_handlers(self, msg_id: int) -> list[RouterHandler] | None:
        """Return the chain for ``msg_id``, or None if none is registered."""
        with self._lock:
            return self.apis.get(msg_id)

    def group(self, start: int, end: int, *handlers: RouterHandler) -> GroupRouter:
        return GroupRouter(start, end, self, *handlers)


class GroupRouter:
    """A range of message ids sharing a set of leading handlers."""

    def __init__(
        self, start: int, end: int, router: RouterSlices, *handlers: RouterHandler
    ) -> None:
        self.start = start
        self.end = end
        self.router = router
        self.handlers: list[RouterHandler] = list(handlers)

    def use(self, *handlers: RouterHandler) -> None:
        self.handlers.extend(handlers)

    def add_handler(self, msg_id: int, *handlers: RouterHandler) -> None:
        """Register ``handlers`` for ``msg_id``, which must lie in the group's range."""
        if msg_id < self.start or msg_id > self.end:
            raise ValueError(f"add router to group err in msgId:{msg_id}")
        self.router.add_handler(msg_id, *self.handlers, *handlers)


def _panic_info(exc: BaseException) -> str:
    frames = traceback.extract_tb(exc.__traceback__)[-STACK_DEPTH:]
    return "".join(
        f"funcname:{frame.name} filename:{os.path.basename(frame.filename)} "
        f"LineNo:{frame.lineno}\n"
        for frame in frames
    )


def router_recovery(request: Any) -> None:
    """Run the rest of the chain, logging any exception instead of raising it."""
    try:
        request.router_slices_next()
    except Exception as exc:
        logger.error(
            "MsgId:%d Handler panic: info:%s err:%s",
            request.msg_id,
            _panic_info(exc),
            exc,
        )


def router_time(request: Any) -> None:
    """Run the rest of the chain and print how long it took."""
    started = time.perf_counter()
    request.router_slices_next()
    print(f"{time.perf_counter() - started:.6f}s")