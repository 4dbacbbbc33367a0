"""A callable with its arguments, invoked when a timer fires."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)


class DelayFunc:
    """A function and the positional arguments to call it with later."""

    def __init__(self, func: Callable[..., Any], args: Iterable[Any] = ()) -> None:
        self.func = func
        self.args = tuple(args)

    def __str__(self) -> str:
        name = getattr(self.func, "__name__", type(self.func).__name__)
        args = " ".join(str(arg) for arg in self.args)
        return f"{{DelayFun:{name}, args:[{args}]}}"

    def call(self) -> None:
        """Call the function; any exception it raises is logged, not propagated."""
        try:
            self.func(*self.args)
        except Exception as exc:
            logger.error("%s Call err: %s", self, exc)