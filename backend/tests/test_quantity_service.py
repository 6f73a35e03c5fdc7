"""
Item quantity projection: summed from sizes, read-only and repeatable.
"""

import pytest

from promostock.errors import NotFound
from promostock.models import TAKE_OUT, BURN
from promostock.services import catalog_service, quantity_service
from promostock.services.transaction_service import record


class TestProject:
    def test_fresh_item(self, item):
        assert quantity_service.project(item.id) == {
            "original": 15,
            "available": 15,
            "in_circulation": 0,
            "total": 15,
        }

    def test_total_excludes_burned_stock(self, item, size_m, promoter, employee):
        record(TAKE_OUT, item.id, size_m.id, 4, employee.id, promoter_id=promoter.id)
        record(BURN, item.id, size_m.id, 1, employee.id, promoter_id=promoter.id)

        assert quantity_service.project(item.id) == {
            "original": 15,
            "available": 11,
            "in_circulation": 3,
            "total": 14,
        }

    def test_projection_is_idempotent(self, item, size_m, promoter, employee):
        record(TAKE_OUT, item.id, size_m.id, 2, employee.id, promoter_id=promoter.id)

        first = quantity_service.project(item.id)
        second = quantity_service.project(item.id)
        assert first == second

    def test_unknown_item(self, db_session):
        with pytest.raises(NotFound):
            quantity_service.project(12345)

    def test_project_many_includes_empty_entries(self, item, brand_a, employee):
        other = catalog_service.create_item(brand_a.id, "Sticker", "ST-1", [], employee.id)

        result = quantity_service.project_many([item.id, other.id])
        assert result[item.id]["available"] == 15
        assert result[other.id] == {"original": 0, "available": 0, "in_circulation": 0, "total": 0}
        assert quantity_service.project_many([]) == {}


class TestSizeQuantities:
    def test_per_size_counters(self, item, size_l, promoter, employee):
        record(TAKE_OUT, item.id, size_l.id, 2, employee.id, promoter_id=promoter.id)
        record(BURN, item.id, size_l.id, 1, employee.id, promoter_id=promoter.id)

        by_label = {s["size"]: s for s in quantity_service.size_quantities(item.id)}
        assert by_label["L"]["available_quantity"] == 3
        assert by_label["L"]["in_circulation"] == 1
        assert by_label["L"]["destroyed_quantity"] == 1
        assert by_label["M"]["destroyed_quantity"] == 0
