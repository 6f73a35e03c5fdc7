"""
Promoter holdings are replayed from the transaction log, never stored.
"""

import pytest

from promostock.errors import NotFound
from promostock.models import TAKE_OUT, RETURN, BURN, RESTOCK
from promostock.services import holdings_service
from promostock.services.transaction_service import record


class TestHoldingsReplay:
    def test_take_out_minus_return_and_burn(self, item, size_m, promoter, employee):
        record(TAKE_OUT, item.id, size_m.id, 5, employee.id, promoter_id=promoter.id)
        record(TAKE_OUT, item.id, size_m.id, 3, employee.id, promoter_id=promoter.id)
        record(RETURN, item.id, size_m.id, 2, employee.id, promoter_id=promoter.id)
        record(BURN, item.id, size_m.id, 1, employee.id, promoter_id=promoter.id)

        assert holdings_service.holdings(promoter.id) == [
            {"item_id": item.id, "item_size_id": size_m.id, "quantity": 5},
        ]

    def test_settled_lines_are_omitted(self, item, size_m, size_l, promoter, employee):
        record(TAKE_OUT, item.id, size_m.id, 2, employee.id, promoter_id=promoter.id)
        record(RETURN, item.id, size_m.id, 1, employee.id, promoter_id=promoter.id)
        record(BURN, item.id, size_m.id, 1, employee.id, promoter_id=promoter.id)
        record(TAKE_OUT, item.id, size_l.id, 1, employee.id, promoter_id=promoter.id)

        assert holdings_service.holdings(promoter.id) == [
            {"item_id": item.id, "item_size_id": size_l.id, "quantity": 1},
        ]

    def test_other_promoters_and_restocks_do_not_count(self, item, size_m, promoter, other_promoter, employee):
        record(RESTOCK, item.id, size_m.id, 4, employee.id)
        record(TAKE_OUT, item.id, size_m.id, 6, employee.id, promoter_id=other_promoter.id)
        record(TAKE_OUT, item.id, size_m.id, 1, employee.id, promoter_id=promoter.id)

        assert holdings_service.holdings(promoter.id) == [
            {"item_id": item.id, "item_size_id": size_m.id, "quantity": 1},
        ]
        assert holdings_service.holdings(other_promoter.id)[0]["quantity"] == 6

    def test_sorted_by_item_then_size(self, item, size_m, size_l, promoter, employee):
        record(TAKE_OUT, item.id, size_l.id, 1, employee.id, promoter_id=promoter.id)
        record(TAKE_OUT, item.id, size_m.id, 1, employee.id, promoter_id=promoter.id)

        ids = [h["item_size_id"] for h in holdings_service.holdings(promoter.id)]
        assert ids == sorted(ids)

    def test_read_is_idempotent(self, item, size_m, promoter, employee):
        record(TAKE_OUT, item.id, size_m.id, 3, employee.id, promoter_id=promoter.id)

        first = holdings_service.holdings(promoter.id)
        assert holdings_service.holdings(promoter.id) == first

    def test_no_activity_is_empty(self, promoter):
        assert holdings_service.holdings(promoter.id) == []
        assert holdings_service.holdings_detailed(promoter.id) == []

    def test_unknown_promoter(self, db_session):
        with pytest.raises(NotFound):
            holdings_service.holdings(424242)

    def test_detailed_adds_display_fields(self, item, size_m, promoter, employee):
        record(TAKE_OUT, item.id, size_m.id, 2, employee.id, promoter_id=promoter.id)

        (entry,) = holdings_service.holdings_detailed(promoter.id)
        assert entry["item_name"] == "Festival T-shirt"
        assert entry["product_code"] == "TS-001"
        assert entry["size"] == "M"
        assert entry["quantity"] == 2


class TestPromoterStats:
    def test_counts_and_current_inventory(self, item, size_m, size_l, promoter, employee):
        record(TAKE_OUT, item.id, size_m.id, 4, employee.id, promoter_id=promoter.id)
        record(TAKE_OUT, item.id, size_l.id, 2, employee.id, promoter_id=promoter.id)
        record(RETURN, item.id, size_m.id, 1, employee.id, promoter_id=promoter.id)
        record(BURN, item.id, size_l.id, 1, employee.id, promoter_id=promoter.id)

        stats = holdings_service.promoter_stats(promoter.id)
        assert stats["total_take_outs"] == 2
        assert stats["total_returns"] == 1
        assert stats["total_burns"] == 1
        assert stats["most_frequent_item"] == {"id": item.id, "name": "Festival T-shirt", "count": 4}
        assert stats["current_inventory_count"] == 4
