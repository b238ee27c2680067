"""
Tests for the operation dispatcher.

Verifies that named operations reach the store, that wire arguments are
coerced, and that every failure comes back as a tagged result.
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest
from auctions.config import ONE_DAY_NS
from auctions.dispatch import AuctionDispatcher, OperationKind, OPERATIONS
from auctions.errors import NotFoundError, StorageFault
from auctions.records import Auction, AuctionPayload

BOB = "bob-principal"
MISSING_ID = "00000000-0000-4000-8000-000000000000"

ART = {"assetType": "art", "assetDescription": "painting", "ownerName": "alice", "status": "active"}


@pytest.fixture
def dispatcher(store):
    return AuctionDispatcher(store)


class TestOperationTable:
    """Test the operation registry"""

    def test_all_operations_registered(self):
        assert set(OPERATIONS) == {
            "getAllAuctions", "getAuctionById", "getOwnersAuctions",
            "getAuctionsByStatus", "getActiveAuctions", "getExpiredAuctions",
            "createAuction", "updateAuction", "endAuction", "deleteAuction",
        }

    def test_operation_kinds(self):
        queries = {op.name for op in AuctionDispatcher.operations() if op.kind == OperationKind.QUERY}
        assert queries == {
            "getAllAuctions", "getAuctionById", "getOwnersAuctions",
            "getAuctionsByStatus", "getActiveAuctions", "getExpiredAuctions",
        }


class TestDispatch:
    """Test dispatching to the store"""

    def test_create_from_dict(self, dispatcher):
        result = dispatcher.call("createAuction", ART)

        assert result.is_ok
        assert isinstance(result.ok, Auction)
        assert result.to_dict()["Ok"]["status"] == "active"

    def test_create_from_payload(self, dispatcher):
        result = dispatcher.call("createAuction", AuctionPayload("art", "painting", "alice"))
        assert result.is_ok

    def test_create_incomplete(self, dispatcher):
        result = dispatcher.call("createAuction", {"assetType": "art"})

        assert not result.is_ok
        assert result.to_dict() == {
            "Err": {"kind": "ValidationError", "message": "incomplete input data"}
        }

    def test_create_non_dict_payload(self, dispatcher):
        result = dispatcher.call("createAuction", "art")
        assert result.err.kind == "ValidationError"

    def test_get_by_id_round_trip(self, dispatcher):
        created = dispatcher.call("createAuction", ART).ok

        result = dispatcher.call("getAuctionById", created.id)

        assert result.ok == created

    def test_not_found(self, dispatcher):
        result = dispatcher.call("getAuctionById", MISSING_ID)

        assert result.err.kind == "NotFoundError"
        with pytest.raises(NotFoundError):
            result.unwrap()

    def test_update_from_dict(self, dispatcher):
        created = dispatcher.call("createAuction", ART).ok

        result = dispatcher.call("updateAuction", created.id, {"ownerName": "Alice B."})

        assert result.ok.owner_name == "Alice B."
        assert result.ok.asset_type == "art"

    def test_update_by_other_caller(self, dispatcher, identity):
        created = dispatcher.call("createAuction", ART).ok

        with identity.as_caller(BOB):
            result = dispatcher.call("updateAuction", created.id, {"ownerName": "Bob"})

        assert result.err.kind == "AuthorizationError"

    def test_end_lifecycle(self, dispatcher, clock):
        created = dispatcher.call("createAuction", ART).ok

        assert dispatcher.call("endAuction", created.id).err.kind == "StateError"
        clock.advance(ONE_DAY_NS)
        assert dispatcher.call("endAuction", created.id).ok.status.value == "inactive"

        expired = dispatcher.call("getExpiredAuctions").to_dict()["Ok"]
        assert [a["id"] for a in expired] == [created.id]

    def test_status_filter_invalid(self, dispatcher):
        result = dispatcher.call("getAuctionsByStatus", "pending")
        assert result.err.kind == "ValidationError"

    def test_delete(self, dispatcher):
        created = dispatcher.call("createAuction", ART).ok

        assert dispatcher.call("deleteAuction", created.id).ok == created
        assert dispatcher.call("getAllAuctions").ok == []

    def test_unknown_operation(self, dispatcher):
        result = dispatcher.call("placeBid", MISSING_ID, 100)

        assert result.err.kind == "ValidationError"
        assert "Unknown operation" in result.err.message

    def test_wrong_arity(self, dispatcher):
        result = dispatcher.call("getAuctionById")
        assert result.err.kind == "ValidationError"

        result = dispatcher.call("getAllAuctions", "extra")
        assert result.err.kind == "ValidationError"

    def test_storage_fault_is_reported(self, dispatcher, store):
        store.close()

        result = dispatcher.call("getAllAuctions")

        assert isinstance(result.err, StorageFault)
        assert result.to_dict()["Err"]["kind"] == "StorageFault"


class TestMetrics:
    """Test metrics recorded by dispatch"""

    def test_metrics_export(self, dispatcher):
        dispatcher.call("createAuction", ART)
        dispatcher.call("getAuctionById", "bad")

        output = dispatcher.metrics.get_metrics().decode("utf-8")

        assert 'auction_registry_operations_total{operation="createAuction",outcome="ok"}' in output
        assert 'outcome="ValidationError"' in output
        assert 'auction_registry_auctions{status="active"}' in output
