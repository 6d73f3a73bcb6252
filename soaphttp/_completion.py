# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import logging
import typing

from .exceptions import (
    CompletionError,
)

log = logging.getLogger(__name__)

Callback = typing.Callable[..., typing.Any]


class Completion:
    """Single use completion handle for a logical request.

    Wraps the caller's callback so it is invoked exactly once, whatever path
    (success, transport error, handshake error, body read error) ends the
    request. Calling the token after it has been consumed is a no-op that
    returns False.

    Args:
        callback: Called with `(error, response, body)`.
    """

    def __init__(
        self,
        callback: Callback,
    ):
        if not callable(callback):
            raise TypeError("callback must be callable, got %s" % type(callback).__name__)

        self._callback = callback
        self._consumed = False
        self.result = None

    @property
    def consumed(self) -> bool:
        return self._consumed

    def __call__(
        self,
        error: typing.Optional[BaseException] = None,
        response: typing.Any = None,
        body: typing.Any = None,
    ) -> bool:
        if self._consumed:
            log.debug("Completion already consumed, ignoring error=%r", error)
            return False

        self._consumed = True
        self.result = self._callback(error, response, body)
        return True

    def complete_strict(
        self,
        error: typing.Optional[BaseException] = None,
        response: typing.Any = None,
        body: typing.Any = None,
    ):
        """Like calling the token but raises CompletionError when already consumed."""
        if not self(error, response, body):
            raise CompletionError("The completion token has already been consumed")
