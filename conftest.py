"""
Pytest configuration for auction registry tests.

Provides a deterministic clock, a switchable caller identity and a fresh
SQLite-backed store per test.
"""

import os
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import pytest

from auctions.clock import ManualClock
from auctions.config import AuctionConfig
from auctions.identity import StaticIdentity
from auctions.records import AuctionPayload
from auctions.storage import SQLiteOrderedMap
from auctions.store import AuctionStore

ALICE = "alice-principal"
BOB = "bob-principal"


@pytest.fixture
def clock():
    """Manual clock starting at a fixed instant"""
    return ManualClock(1_700_000_000_000_000_000)


@pytest.fixture
def identity():
    """Identity source acting as ALICE unless switched"""
    return StaticIdentity(ALICE)


@pytest.fixture
def db_path():
    """Temporary SQLite database file"""
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
    db_file.close()

    yield Path(db_file.name)

    os.unlink(db_file.name)


@pytest.fixture
def config():
    return AuctionConfig()


@pytest.fixture
def store(db_path, identity, clock, config):
    """Fresh auction store backed by a temporary database"""
    auction_store = AuctionStore(
        SQLiteOrderedMap(db_path), identity, clock=clock, config=config
    )

    yield auction_store

    auction_store.close()


@pytest.fixture
def art_payload():
    return AuctionPayload(
        asset_type="art",
        asset_description="painting",
        owner_name="alice",
        status="active",
    )
