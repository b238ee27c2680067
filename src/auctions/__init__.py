"""
Auctions module: auction record store with ownership and time-window rules.
"""

from .errors import (
    AuctionError,
    ValidationError,
    NotFoundError,
    AuthorizationError,
    StateError,
    StorageFault,
)
from .records import (
    Auction,
    AuctionPayload,
    AuctionStatus,
    AuctionUpdate,
    is_auction_status_valid,
)
from .clock import ManualClock, SystemClock
from .config import AuctionConfig, DeletePolicy
from .identity import RequestIdentity, StaticIdentity
from .storage import SQLiteOrderedMap
from .store import AuctionStore
from .dispatch import AuctionDispatcher, OperationResult

__all__ = [
    'AuctionError',
    'ValidationError',
    'NotFoundError',
    'AuthorizationError',
    'StateError',
    'StorageFault',
    'Auction',
    'AuctionPayload',
    'AuctionStatus',
    'AuctionUpdate',
    'is_auction_status_valid',
    'ManualClock',
    'SystemClock',
    'AuctionConfig',
    'DeletePolicy',
    'RequestIdentity',
    'StaticIdentity',
    'SQLiteOrderedMap',
    'AuctionStore',
    'AuctionDispatcher',
    'OperationResult'
]
