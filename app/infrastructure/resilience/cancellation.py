"""Cooperative cancellation tokens.

A new invocation of a logical operation raises the token of the prior
in-flight one; the prior invocation checks its token when it resumes and
discards its result instead of applying it.
"""

from typing import Dict, Optional

from infrastructure.operations.exceptions import OperationCancelledError


class CancellationToken:
    """Flag shared between an operation and whoever may supersede it."""

    __slots__ = ("key", "_cancelled")

    def __init__(self, key: Optional[str] = None) -> None:
        self.key = key
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelledError(f"Operation {self.key or ''} was superseded")


class CancellationScope:
    """Issues tokens per operation key; issuing a new one cancels the prior.

    Example:
        scope = CancellationScope()
        token = scope.issue("search")
        results = await fetch()
        if token.cancelled:
            return None
    """

    def __init__(self) -> None:
        self._tokens: Dict[str, CancellationToken] = {}

    def issue(self, key: str) -> CancellationToken:
        previous = self._tokens.get(key)
        if previous is not None:
            previous.cancel()
        token = CancellationToken(key)
        self._tokens[key] = token
        return token

    def cancel(self, key: str) -> None:
        token = self._tokens.pop(key, None)
        if token is not None:
            token.cancel()

    def cancel_all(self) -> None:
        for key in list(self._tokens):
            self.cancel(key)

    def is_current(self, token: CancellationToken) -> bool:
        return token.key is not None and self._tokens.get(token.key) is token
