"""
Identity sources: supply the stable identifier of the current caller.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from auctions.errors import AuthorizationError
from auctions.records import validate_owner_id

logger = logging.getLogger(__name__)


class StaticIdentity:
    """Identity source with a fixed caller, switchable for tests and scripts"""

    def __init__(self, caller_id: str):
        self.caller_id = validate_owner_id(caller_id)

    def __call__(self) -> str:
        return self.caller_id

    @contextmanager
    def as_caller(self, caller_id: str) -> Iterator[str]:
        """Temporarily act as another caller"""
        previous = self.caller_id
        self.caller_id = validate_owner_id(caller_id)
        try:
            yield self.caller_id
        finally:
            self.caller_id = previous


class RequestIdentity:
    """
    Request-scoped identity source.

    The transport binds the authenticated caller for the duration of a
    request; calls outside a binding are rejected.
    """

    def __init__(self, name: str = "auction_caller"):
        self._caller: ContextVar[Optional[str]] = ContextVar(name, default=None)

    def __call__(self) -> str:
        caller_id = self._caller.get()
        if caller_id is None:
            raise AuthorizationError("no caller identity")
        return caller_id

    @contextmanager
    def bind(self, caller_id: Optional[str]) -> Iterator[Optional[str]]:
        """Bind caller_id (None for anonymous) until the block exits"""
        token = self._caller.set(caller_id)
        try:
            yield caller_id
        finally:
            self._caller.reset(token)
