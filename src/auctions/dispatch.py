"""
Operation dispatcher: maps named auction operations onto the store.

Every call returns an OperationResult; AuctionErrors never escape.
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from auctions.errors import AuctionError, ValidationError
from auctions.records import INCOMPLETE_INPUT, Auction, AuctionPayload, AuctionUpdate
from auctions.store import AuctionStore
from observability.metrics import MetricsCollector, MetricsContext
from observability.tracing import create_span

logger = logging.getLogger(__name__)


class OperationKind(Enum):
    """Whether an operation reads or mutates the store"""

    QUERY = "query"
    UPDATE = "update"


@dataclass(frozen=True)
class Operation:
    name: str
    kind: OperationKind
    method: str


OPERATIONS: Dict[str, Operation] = {
    op.name: op
    for op in [
        Operation("getAllAuctions", OperationKind.QUERY, "get_all_auctions"),
        Operation("getAuctionById", OperationKind.QUERY, "get_auction_by_id"),
        Operation("getOwnersAuctions", OperationKind.QUERY, "get_owners_auctions"),
        Operation("getAuctionsByStatus", OperationKind.QUERY, "get_auctions_by_status"),
        Operation("getActiveAuctions", OperationKind.QUERY, "get_active_auctions"),
        Operation("getExpiredAuctions", OperationKind.QUERY, "get_expired_auctions"),
        Operation("createAuction", OperationKind.UPDATE, "create_auction"),
        Operation("updateAuction", OperationKind.UPDATE, "update_auction"),
        Operation("endAuction", OperationKind.UPDATE, "end_auction"),
        Operation("deleteAuction", OperationKind.UPDATE, "delete_auction"),
    ]
}


def _to_wire(value: Any) -> Any:
    if isinstance(value, Auction):
        return value.to_dict()
    if isinstance(value, list):
        return [_to_wire(item) for item in value]
    return value


@dataclass(frozen=True)
class OperationResult:
    """Discriminated success/failure of one dispatched operation"""

    operation: str
    ok: Any = None
    err: Optional[AuctionError] = None

    @property
    def is_ok(self) -> bool:
        return self.err is None

    def unwrap(self) -> Any:
        """Return the success value, re-raising the error otherwise"""
        if self.err is not None:
            raise self.err
        return self.ok

    def to_dict(self) -> Dict[str, Any]:
        if self.err is not None:
            return {"Err": self.err.to_dict()}
        return {"Ok": _to_wire(self.ok)}


class AuctionDispatcher:
    """
    Thin dispatcher in front of an AuctionStore.

    Coerces wire arguments (dict payloads) into envelopes, records metrics
    and spans, and converts AuctionErrors into OperationResult.err.
    """

    def __init__(self, store: AuctionStore, metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.metrics = metrics or MetricsCollector(status_counter=store.count_by_status)

    @staticmethod
    def operations() -> List[Operation]:
        return list(OPERATIONS.values())

    def _coerce(self, name: str, method, args: tuple) -> tuple:
        try:
            inspect.signature(method).bind(*args)
        except TypeError as e:
            raise ValidationError(f"Invalid arguments for {name}: {e}")

        if name == "createAuction":
            return (self._envelope(AuctionPayload, args[0]),)
        if name == "updateAuction":
            return (args[0], self._envelope(AuctionUpdate, args[1]))
        return args

    @staticmethod
    def _envelope(cls, value):
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            return cls.from_dict(value)
        raise ValidationError(INCOMPLETE_INPUT)

    def call(self, name: str, *args) -> OperationResult:
        """
        Dispatch a named operation.

        Args:
            name: Operation name, e.g. "createAuction"
            *args: Positional arguments of the operation

        Returns:
            OperationResult carrying the value or the typed error
        """
        operation = OPERATIONS.get(name)
        if operation is None:
            err = ValidationError(f"Unknown operation: {name}")
            self.metrics.record_operation("unknown", err.kind)
            return OperationResult(operation=name, err=err)

        method = getattr(self.store, operation.method)

        with create_span(f"auction.{name}", {"auction.kind": operation.kind.value}) as span:
            with MetricsContext(name):
                try:
                    value = method(*self._coerce(name, method, args))
                except AuctionError as e:
                    logger.debug(f"{name} failed: {e.kind}: {e.message}")
                    span.set_attribute("auction.outcome", e.kind)
                    self.metrics.record_operation(name, e.kind)
                    return OperationResult(operation=name, err=e)

            span.set_attribute("auction.outcome", "ok")

        self.metrics.record_operation(name, "ok")
        return OperationResult(operation=name, ok=value)
