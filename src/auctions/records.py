"""
Auction records: status enum, record and payload dataclasses, validation rules.
"""

import re
from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from auctions.errors import ValidationError, StorageFault

U64_MAX = 2**64 - 1

AUCTION_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
)

# Principal text forms ("2vxsx-fae") and DIDs ("did:key:z6Mk...") both match
OWNER_ID_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9._:@-]{0,126}[A-Za-z0-9])?$")

INCOMPLETE_INPUT = "incomplete input data"


class AuctionStatus(Enum):
    """Auction lifecycle status"""

    ACTIVE = "active"
    INACTIVE = "inactive"

    @classmethod
    def parse(cls, value: Union["AuctionStatus", str]) -> "AuctionStatus":
        """Translate a wire value into a status, raising ValidationError if unknown"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Invalid auction status: {value!r}")


def is_auction_status_valid(status: Union[AuctionStatus, str, None]) -> bool:
    """True if status is one of the two lifecycle states"""
    if isinstance(status, AuctionStatus):
        return True
    return status == AuctionStatus.ACTIVE.value or status == AuctionStatus.INACTIVE.value


def validate_auction_id(auction_id: Any) -> str:
    """Validate auction ID format (lowercase UUID)"""
    if not isinstance(auction_id, str) or not AUCTION_ID_PATTERN.match(auction_id):
        raise ValidationError(f"Malformed auction id: {auction_id!r}")
    return auction_id


def validate_owner_id(owner_id: Any) -> str:
    """Validate caller/owner identifier format"""
    if not isinstance(owner_id, str) or not OWNER_ID_PATTERN.match(owner_id):
        raise ValidationError(f"Malformed owner id: {owner_id!r}")
    return owner_id


def _required_text(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(INCOMPLETE_INPUT)
    return value.strip()


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _required_text(value)


@dataclass
class AuctionPayload:
    """Input envelope for create_auction"""

    asset_type: str
    asset_description: str
    owner_name: str
    status: Optional[Union[AuctionStatus, str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuctionPayload":
        if not isinstance(data, dict):
            raise ValidationError(INCOMPLETE_INPUT)
        return cls(
            asset_type=data.get("assetType"),
            asset_description=data.get("assetDescription"),
            owner_name=data.get("ownerName"),
            status=data.get("status"),
        )

    def validated(self) -> "AuctionPayload":
        """Return a trimmed copy, raising ValidationError on empty fields or bad status"""
        if self.status is not None and not is_auction_status_valid(self.status):
            raise ValidationError(INCOMPLETE_INPUT)
        return AuctionPayload(
            asset_type=_required_text(self.asset_type),
            asset_description=_required_text(self.asset_description),
            owner_name=_required_text(self.owner_name),
            status=AuctionStatus.parse(self.status) if self.status is not None else None,
        )


@dataclass
class AuctionUpdate:
    """
    Input envelope for update_auction.

    None leaves a field unchanged; a supplied field must be non-empty.
    """

    asset_type: Optional[str] = None
    asset_description: Optional[str] = None
    owner_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuctionUpdate":
        if not isinstance(data, dict):
            raise ValidationError(INCOMPLETE_INPUT)
        return cls(
            asset_type=data.get("assetType"),
            asset_description=data.get("assetDescription"),
            owner_name=data.get("ownerName"),
        )

    def validated(self) -> "AuctionUpdate":
        update = AuctionUpdate(
            asset_type=_optional_text(self.asset_type),
            asset_description=_optional_text(self.asset_description),
            owner_name=_optional_text(self.owner_name),
        )
        if update.is_empty():
            raise ValidationError(INCOMPLETE_INPUT)
        return update

    def is_empty(self) -> bool:
        return (
            self.asset_type is None
            and self.asset_description is None
            and self.owner_name is None
        )


@dataclass(frozen=True)
class Auction:
    """Persisted auction record"""

    id: str
    asset_type: str
    asset_description: str
    owner_name: str
    owner_id: str
    start_date: int  # Nanosecond timestamp
    end_date: int  # Nanosecond timestamp
    status: AuctionStatus

    @property
    def is_active(self) -> bool:
        return self.status == AuctionStatus.ACTIVE

    def window_elapsed(self, now_ns: int) -> bool:
        """True once now_ns has reached end_date"""
        return now_ns >= self.end_date

    def to_dict(self) -> Dict[str, Any]:
        """Wire/persisted form (camelCase, status as string)"""
        return {
            "id": self.id,
            "assetType": self.asset_type,
            "assetDescription": self.asset_description,
            "ownerName": self.owner_name,
            "ownerId": self.owner_id,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Auction":
        """Rebuild a record from its persisted form; corrupt rows raise StorageFault"""
        try:
            auction = cls(
                id=data["id"],
                asset_type=data["assetType"],
                asset_description=data["assetDescription"],
                owner_name=data["ownerName"],
                owner_id=data["ownerId"],
                start_date=int(data["startDate"]),
                end_date=int(data["endDate"]),
                status=AuctionStatus(data["status"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise StorageFault(f"Corrupt auction record: {e}")

        if not (0 <= auction.start_date <= auction.end_date <= U64_MAX):
            raise StorageFault(f"Corrupt auction dates for {auction.id}")
        return auction
