"""
Auction Store: auction lifecycle with ownership and time-window rules.
"""

import logging
import threading
import uuid
from dataclasses import replace
from typing import Callable, List, Optional, Union

from auctions.clock import SystemClock
from auctions.config import AuctionConfig, DeletePolicy
from auctions.errors import (
    AuthorizationError,
    NotFoundError,
    StateError,
    ValidationError,
)
from auctions.records import (
    U64_MAX,
    Auction,
    AuctionPayload,
    AuctionStatus,
    AuctionUpdate,
    is_auction_status_valid,
    validate_auction_id,
    validate_owner_id,
)
from auctions.storage import SQLiteOrderedMap

logger = logging.getLogger(__name__)


class AuctionStore:
    """
    Auction record store backed by an ordered map keyed by auction id.

    Every operation holds the store lock for its full read-check-write
    sequence, so ownership and window checks cannot race a concurrent write.
    """

    def __init__(
        self,
        storage: SQLiteOrderedMap,
        identity: Callable[[], str],
        clock: Optional[Callable[[], int]] = None,
        config: Optional[AuctionConfig] = None,
    ):
        """
        Initialize auction store.

        Args:
            storage: Ordered map holding serialized auctions
            identity: Returns the current caller identifier
            clock: Returns current time in nanoseconds (default SystemClock)
            config: Duration and delete policy (default AuctionConfig())
        """
        self.storage = storage
        self.identity = identity
        self.clock = clock or SystemClock()
        self.config = config or AuctionConfig()
        self.lock = threading.Lock()

    @classmethod
    def open(
        cls,
        config: AuctionConfig,
        identity: Callable[[], str],
        clock: Optional[Callable[[], int]] = None,
    ) -> "AuctionStore":
        """Open (or create) the store at config.db_path"""
        config.state_dir.mkdir(parents=True, exist_ok=True)
        storage = SQLiteOrderedMap(
            config.db_path,
            max_key_bytes=config.max_key_bytes,
            max_value_bytes=config.max_value_bytes,
        )
        logger.info(f"Opened auction store at {config.db_path}")
        return cls(storage, identity, clock=clock, config=config)

    # Internal helpers

    def _caller(self) -> str:
        caller_id = self.identity()
        try:
            return validate_owner_id(caller_id)
        except ValidationError:
            raise AuthorizationError(f"Invalid caller identity: {caller_id!r}")

    def _load(self, auction_id: str) -> Auction:
        data = self.storage.get(auction_id)
        if data is None:
            raise NotFoundError(f"Auction with id {auction_id} has not been found")
        return Auction.from_dict(data)

    def _save(self, auction: Auction) -> None:
        try:
            if auction.is_active:
                # The ended form must still fit, or end_auction could never succeed
                ended = replace(auction, end_date=U64_MAX, status=AuctionStatus.INACTIVE)
                self.storage.encode(ended.to_dict())
            self.storage.insert(auction.id, auction.to_dict())
        except ValueError as e:
            raise ValidationError(str(e))

    def _load_all(self) -> List[Auction]:
        return [Auction.from_dict(data) for data in self.storage.values()]

    def _require_owner(self, auction: Auction, caller_id: str, action: str) -> None:
        if auction.owner_id != caller_id:
            logger.warning(
                f"Rejected {action} of auction {auction.id} by non-owner {caller_id}"
            )
            raise AuthorizationError(f"only the owner can {action}")

    # Queries

    def get_all_auctions(self) -> List[Auction]:
        """All live auctions, in storage enumeration order"""
        with self.lock:
            return self._load_all()

    def get_auction_by_id(self, auction_id: str) -> Auction:
        """
        Get auction by ID.

        Raises:
            ValidationError: If auction_id is malformed
            NotFoundError: If no auction exists at auction_id
        """
        validate_auction_id(auction_id)
        with self.lock:
            return self._load(auction_id)

    def get_owners_auctions(self, owner_id: Optional[str] = None) -> List[Auction]:
        """
        All auctions owned by owner_id.

        Args:
            owner_id: Owner identifier; defaults to the current caller
        """
        if owner_id is None:
            owner_id = self._caller()
        validate_owner_id(owner_id)

        with self.lock:
            return [a for a in self._load_all() if a.owner_id == owner_id]

    def get_auctions_by_status(
        self, status: Union[AuctionStatus, str]
    ) -> List[Auction]:
        """
        All auctions in the given status.

        Raises:
            ValidationError: If status is not active/inactive
        """
        if not is_auction_status_valid(status):
            raise ValidationError(f"Invalid auction status: {status!r}")
        status = AuctionStatus.parse(status)

        with self.lock:
            return [a for a in self._load_all() if a.status == status]

    def get_active_auctions(self) -> List[Auction]:
        return self.get_auctions_by_status(AuctionStatus.ACTIVE)

    def get_expired_auctions(self) -> List[Auction]:
        return self.get_auctions_by_status(AuctionStatus.INACTIVE)

    # Mutations

    def create_auction(self, payload: AuctionPayload) -> Auction:
        """
        Create a new active auction owned by the current caller.

        The window runs from now for config.duration_ns.

        Raises:
            ValidationError: If any text field is empty or status is invalid
        """
        payload = payload.validated()
        caller_id = self._caller()

        with self.lock:
            start_date = self.clock()
            auction = Auction(
                id=str(uuid.uuid4()),
                asset_type=payload.asset_type,
                asset_description=payload.asset_description,
                owner_name=payload.owner_name,
                owner_id=caller_id,
                start_date=start_date,
                end_date=min(start_date + self.config.duration_ns, U64_MAX),
                status=AuctionStatus.ACTIVE,
            )
            self._save(auction)

        logger.info(f"Created auction {auction.id} for owner {caller_id}")
        return auction

    def update_auction(self, auction_id: str, update: AuctionUpdate) -> Auction:
        """
        Merge supplied text fields into an auction whose window is still open.

        Raises:
            ValidationError: If auction_id is malformed or no field is supplied
            NotFoundError: If no auction exists at auction_id
            AuthorizationError: If the caller is not the owner
            StateError: If the auction window has elapsed
        """
        validate_auction_id(auction_id)
        update = update.validated()
        caller_id = self._caller()

        with self.lock:
            auction = self._load(auction_id)
            self._require_owner(auction, caller_id, "update")

            if auction.window_elapsed(self.clock()):
                raise StateError("cannot modify an ended auction")

            updated = replace(
                auction,
                asset_type=update.asset_type or auction.asset_type,
                asset_description=update.asset_description or auction.asset_description,
                owner_name=update.owner_name or auction.owner_name,
            )
            self._save(updated)

        logger.info(f"Updated auction {auction_id}")
        return updated

    def end_auction(self, auction_id: str) -> Auction:
        """
        Finalize an auction whose window has elapsed.

        Raises:
            ValidationError: If auction_id is malformed
            NotFoundError: If no auction exists at auction_id
            AuthorizationError: If the caller is not the owner
            StateError: If already ended or the window is still open
        """
        validate_auction_id(auction_id)
        caller_id = self._caller()

        with self.lock:
            auction = self._load(auction_id)
            self._require_owner(auction, caller_id, "end")

            if not auction.is_active:
                raise StateError("already ended")

            now = self.clock()
            if not auction.window_elapsed(now):
                raise StateError("time remaining")

            ended = replace(auction, end_date=now, status=AuctionStatus.INACTIVE)
            self._save(ended)

        logger.info(f"Ended auction {auction_id}")
        return ended

    def delete_auction(self, auction_id: str) -> Auction:
        """
        Delete an auction and return the removed record.

        Raises:
            ValidationError: If auction_id is malformed
            NotFoundError: If no auction exists at auction_id
            AuthorizationError: If the caller is not the owner
        """
        validate_auction_id(auction_id)
        caller_id = self._caller()

        with self.lock:
            if self.config.delete_policy == DeletePolicy.REMOVE_THEN_CHECK:
                data = self.storage.remove(auction_id)
                if data is None:
                    raise NotFoundError(f"Auction with id {auction_id} has not been found")
                auction = Auction.from_dict(data)
                if auction.owner_id != caller_id:
                    logger.warning(
                        f"Auction {auction_id} removed by non-owner {caller_id} "
                        f"under {DeletePolicy.REMOVE_THEN_CHECK.value} policy"
                    )
                    raise AuthorizationError("only the owner can delete")
            else:
                auction = self._load(auction_id)
                self._require_owner(auction, caller_id, "delete")
                self.storage.remove(auction_id)

        logger.info(f"Deleted auction {auction_id}")
        return auction

    def count_by_status(self) -> dict:
        """Number of live auctions per status value"""
        counts = {status.value: 0 for status in AuctionStatus}
        for auction in self.get_all_auctions():
            counts[auction.status.value] += 1
        return counts

    def close(self) -> None:
        self.storage.close()
