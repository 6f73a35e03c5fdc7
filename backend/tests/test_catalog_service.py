"""
Catalog master data: employees, brands, promoters, items and sizes.
"""

import pytest

from promostock.errors import InvalidQuantity, NotFound, Unauthenticated
from promostock.services import catalog_service, quantity_service
from promostock.services.catalog_service import DEFAULT_SIZE_LABEL
from promostock.validation import ValidationError


class TestEmployees:
    def test_create_normalizes_initials(self, db_session):
        emp = catalog_service.create_employee("  Jane Doe ", "jd")
        assert emp.full_name == "Jane Doe"
        assert emp.initials == "JD"
        assert emp.is_active is True

    def test_create_requires_name(self, db_session):
        with pytest.raises(ValidationError):
            catalog_service.create_employee("", "XX")

    def test_deactivate(self, employee):
        catalog_service.set_employee_active(employee.id, False)
        assert catalog_service.list_employees(active_only=True) == []
        assert len(catalog_service.list_employees()) == 1

    def test_deactivate_unknown(self, db_session):
        with pytest.raises(NotFound):
            catalog_service.set_employee_active(999, False)

    def test_update_employee(self, employee):
        other = catalog_service.create_employee("Sam Lee", "SL")
        updated = catalog_service.update_employee(other.id, {"full_name": " Samuel Lee ", "initials": "sl2"}, employee.id)
        assert updated.full_name == "Samuel Lee"
        assert updated.initials == "SL2"

        catalog_service.update_employee(other.id, {"is_active": False}, employee.id)
        assert [e.id for e in catalog_service.list_employees(active_only=True)] == [employee.id]

    def test_update_employee_rejects_bad_patches(self, employee):
        for patch in ({}, {"initials": "TOOLONGXX"}, {"full_name": "  "}, {"id": 5}, {"is_active": "maybe"}):
            with pytest.raises(ValidationError):
                catalog_service.update_employee(employee.id, patch, employee.id)

    def test_update_employee_needs_active_actor(self, employee, inactive_employee):
        with pytest.raises(Unauthenticated):
            catalog_service.update_employee(employee.id, {"full_name": "X"}, inactive_employee.id)
        with pytest.raises(NotFound):
            catalog_service.update_employee(999, {"full_name": "X"}, employee.id)


class TestBrandsAndPromoters:
    def test_brand_records_creator(self, brand_a, employee):
        assert brand_a.created_by_employee_id == employee.id

    def test_pinned_brands_first(self, employee, brand_a):
        pinned = catalog_service.create_brand({"name": "Zeta", "is_pinned": True}, employee.id)
        names = [b.name for b in catalog_service.list_brands()]
        assert names[0] == pinned.name

    def test_brand_rejects_unknown_fields(self, employee):
        with pytest.raises(ValidationError):
            catalog_service.create_brand({"name": "X", "owner": "me"}, employee.id)

    def test_brand_requires_active_employee(self, inactive_employee):
        with pytest.raises(Unauthenticated):
            catalog_service.create_brand({"name": "X"}, inactive_employee.id)

    def test_promoter_search(self, promoter, other_promoter):
        found = catalog_service.list_promoters(search="quinn")
        assert [p.id for p in found] == [other_promoter.id]

    def test_inactive_promoters_hidden_by_default(self, db_session, promoter):
        promoter.is_active = False
        db_session.commit()
        assert catalog_service.list_promoters() == []
        assert len(catalog_service.list_promoters(active_only=False)) == 1

    def test_pin_and_deactivate_brand(self, employee, brand_a, brand_b):
        catalog_service.update_brand(brand_b.id, {"is_pinned": True}, employee.id)
        assert [b.id for b in catalog_service.list_brands()] == [brand_b.id, brand_a.id]

        updated = catalog_service.update_brand(brand_b.id, {"is_active": False, "name": "Old Brand"}, employee.id)
        assert updated.name == "Old Brand"
        assert [b.id for b in catalog_service.list_brands()] == [brand_a.id]
        assert len(catalog_service.list_brands(active_only=False)) == 2

    def test_update_brand_validation(self, employee, brand_a):
        for patch in ({}, {"name": ""}, {"created_by_employee_id": 1}, {"is_pinned": "sometimes"}):
            with pytest.raises(ValidationError):
                catalog_service.update_brand(brand_a.id, patch, employee.id)
        with pytest.raises(NotFound):
            catalog_service.update_brand(999, {"name": "X"}, employee.id)

    def test_update_and_deactivate_promoter(self, employee, promoter):
        updated = catalog_service.update_promoter(
            promoter.id, {"phone_number": "555-0100", "clothing_size": "L"}, employee.id
        )
        assert updated.phone_number == "555-0100"
        assert updated.clothing_size == "L"

        catalog_service.update_promoter(promoter.id, {"is_active": False}, employee.id)
        assert catalog_service.list_promoters() == []

    def test_update_promoter_validation(self, employee, inactive_employee, promoter):
        with pytest.raises(ValidationError):
            catalog_service.update_promoter(promoter.id, {}, employee.id)
        with pytest.raises(NotFound):
            catalog_service.update_promoter(999, {"name": "X"}, employee.id)
        with pytest.raises(Unauthenticated):
            catalog_service.update_promoter(promoter.id, {"name": "X"}, inactive_employee.id)


class TestItems:
    def test_create_with_sizes(self, item):
        labels = sorted(s.size for s in item.sizes)
        assert labels == ["L", "M"]
        for s in item.sizes:
            assert s.available_quantity == s.original_quantity
            assert s.in_circulation == 0

    def test_create_without_sizes_gets_default(self, brand_a, employee):
        created = catalog_service.create_item(brand_a.id, "Lanyard", "LN-1", [], employee.id)
        assert [(s.size, s.original_quantity) for s in created.sizes] == [(DEFAULT_SIZE_LABEL, 0)]

    def test_duplicate_size_in_request(self, brand_a, employee):
        with pytest.raises(InvalidQuantity):
            catalog_service.create_item(brand_a.id, "Hat", "H-1", [("M", 1), ("M", 2)], employee.id)

    def test_negative_starting_quantity(self, brand_a, employee):
        with pytest.raises(InvalidQuantity):
            catalog_service.create_item(brand_a.id, "Hat", "H-1", [("M", -1)], employee.id)

    def test_unknown_brand(self, employee):
        with pytest.raises(NotFound):
            catalog_service.create_item(999, "Hat", "H-1", [], employee.id)

    def test_add_size(self, item, employee):
        added = catalog_service.add_item_size(item.id, "XL", 4, employee.id)
        assert added.original_quantity == 4
        assert quantity_service.project(item.id)["available"] == 19

    def test_add_duplicate_size(self, item, employee):
        with pytest.raises(InvalidQuantity):
            catalog_service.add_item_size(item.id, "M", 1, employee.id)

    def test_update_item(self, item, employee):
        updated = catalog_service.update_item(item.id, {"name": "New Name", "is_active": False}, employee.id)
        assert updated.name == "New Name"
        assert updated.is_active is False

    def test_update_rejects_quantity_and_sharing_fields(self, item, employee):
        for patch in ({"is_shared": True}, {"brand_id": 2}, {}):
            with pytest.raises(ValidationError):
                catalog_service.update_item(item.id, patch, employee.id)

    def test_update_unknown_item(self, employee):
        with pytest.raises(NotFound):
            catalog_service.update_item(999, {"name": "x"}, employee.id)
