"""
Tests for DonorService -- the donor directory.

Covers:
- register_donor(): happy path, any role, field validation
- update_donor(): partial updates, unknown fields, blood type changes
  apply to future donations only
- remove_donor(): admin only, refused while live donations exist
- search_by_name(): case-insensitive substring, LIKE wildcards escaped,
  limit, blank fragment
- list_donors(): newest first
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from bloodbank_kernel.domain.blood_types import BloodType
from bloodbank_kernel.exceptions import (
    AuthorizationError,
    DonorNotFoundError,
    DonorReferencedError,
    InvalidBloodTypeError,
    InvalidDonorDataError,
)


class TestRegisterDonor:

    def test_register(self, donor_service, admin_actor):
        info = donor_service.register_donor(
            admin_actor,
            full_name="  Grace Hopper ",
            age=42,
            weight_kg="61.5",
            blood_type="ab-",
            phone="+1 555 0100",
        )

        assert info.full_name == "Grace Hopper"
        assert info.age == 42
        assert info.weight_kg == Decimal("61.5")
        assert info.blood_type is BloodType.AB_NEG
        assert info.phone == "+1 555 0100"
        assert donor_service.get_donor(info.id) == info

    def test_any_role_may_register(self, donor_service, regular_actor):
        info = donor_service.register_donor(
            regular_actor, full_name="Walk In", age=25, weight_kg=Decimal("80"), blood_type="O+"
        )
        assert info.phone is None

    def test_invalid_blood_type(self, donor_service, admin_actor):
        with pytest.raises(InvalidBloodTypeError):
            donor_service.register_donor(
                admin_actor, full_name="X", age=30, weight_kg=Decimal("70"), blood_type="OO"
            )

    @pytest.mark.parametrize(
        "field, kwargs",
        [
            ("full_name", {"full_name": "  "}),
            ("age", {"age": 0}),
            ("weight_kg", {"weight_kg": 70.5}),
        ],
    )
    def test_invalid_fields(self, donor_service, admin_actor, field, kwargs):
        values = {"full_name": "Valid Name", "age": 30, "weight_kg": Decimal("70"), "blood_type": "A+"}
        values.update(kwargs)
        with pytest.raises(InvalidDonorDataError) as exc_info:
            donor_service.register_donor(admin_actor, **values)
        assert exc_info.value.field == field
        assert donor_service.list_donors() == ()

    def test_completed_log_omits_personal_data(self, donor_service, admin_actor, captured_logs):
        donor_service.register_donor(
            admin_actor, full_name="Private Person", age=50, weight_kg=Decimal("65"), blood_type="B-"
        )
        completed = [r for r in captured_logs() if r["message"] == "register_donor_completed"]
        assert len(completed) == 1
        assert "full_name" not in completed[0]
        assert "result_donor_id" in completed[0]


class TestUpdateDonor:

    def test_partial_update(self, donor_service, regular_actor, create_donor):
        donor = create_donor(full_name="Old Name", age=30)

        info = donor_service.update_donor(regular_actor, donor.id, full_name="New Name", phone="555")

        assert info.full_name == "New Name"
        assert info.phone == "555"
        assert info.age == 30
        assert info.blood_type is donor.blood_type

    def test_unknown_field(self, donor_service, admin_actor, create_donor):
        donor = create_donor()
        with pytest.raises(InvalidDonorDataError) as exc_info:
            donor_service.update_donor(admin_actor, donor.id, height_cm=180)
        assert exc_info.value.field == "height_cm"

    def test_unknown_donor(self, donor_service, admin_actor):
        with pytest.raises(DonorNotFoundError):
            donor_service.update_donor(admin_actor, uuid4(), age=40)

    def test_blood_type_change_applies_to_future_donations(
        self, donor_service, inventory_service, admin_actor, create_donor, inventory_selector,
        stock_of, captured_logs,
    ):
        donor = create_donor(blood_type="A+")
        before = inventory_service.record_donation(admin_actor, donor.id, 450, date(2024, 7, 1))

        donor_service.update_donor(admin_actor, donor.id, blood_type="B+")
        after = inventory_service.record_donation(admin_actor, donor.id, 450, date(2024, 7, 1))

        assert inventory_selector.get_donation(before.donation_id).blood_type is BloodType.A_POS
        assert after.blood_type is BloodType.B_POS
        assert stock_of("A+") == 1
        assert stock_of("B+") == 1
        changed = [r for r in captured_logs() if r["message"] == "donor_blood_type_changed"]
        assert changed[0]["previous_blood_type"] == "A+"
        assert changed[0]["blood_type"] == "B+"


class TestRemoveDonor:

    def test_admin_removes_unreferenced_donor(self, donor_service, admin_actor, create_donor):
        donor = create_donor()

        donor_service.remove_donor(admin_actor, donor.id)

        with pytest.raises(DonorNotFoundError):
            donor_service.get_donor(donor.id)

    def test_medical_staff_may_not_remove(self, donor_service, medical_actor, create_donor):
        donor = create_donor()
        with pytest.raises(AuthorizationError):
            donor_service.remove_donor(medical_actor, donor.id)
        assert donor_service.get_donor(donor.id).id == donor.id

    def test_referenced_donor_kept(self, donor_service, admin_actor, record_donation, create_donor):
        donor = create_donor(blood_type="O-")
        record_donation(donor=donor)
        record_donation(donor=donor)

        with pytest.raises(DonorReferencedError) as exc_info:
            donor_service.remove_donor(admin_actor, donor.id)

        assert exc_info.value.donation_count == 2
        assert donor_service.get_donor(donor.id).id == donor.id

    def test_removable_once_donations_are_gone(
        self, donor_service, inventory_service, admin_actor, record_donation, create_donor
    ):
        donor = create_donor(blood_type="O-")
        receipt = record_donation(donor=donor)
        inventory_service.remove_donation(admin_actor, receipt.donation_id)

        donor_service.remove_donor(admin_actor, donor.id)

        with pytest.raises(DonorNotFoundError):
            donor_service.get_donor(donor.id)

    def test_unknown_donor(self, donor_service, admin_actor):
        with pytest.raises(DonorNotFoundError):
            donor_service.remove_donor(admin_actor, "missing")


class TestSearchAndList:

    def test_case_insensitive_substring(self, donor_service, create_donor):
        create_donor(full_name="Diana Prince")
        create_donor(full_name="Ana Diaz")
        create_donor(full_name="Bruce Wayne")

        hits = donor_service.search_by_name("DIA")

        assert [d.full_name for d in hits] == ["Ana Diaz", "Diana Prince"]

    def test_wildcards_are_literal(self, donor_service, create_donor):
        create_donor(full_name="Bob_Smith")
        create_donor(full_name="Bobby Smith")
        create_donor(full_name="100% Donor")

        assert [d.full_name for d in donor_service.search_by_name("b_s")] == ["Bob_Smith"]
        assert [d.full_name for d in donor_service.search_by_name("%")] == ["100% Donor"]

    def test_limit(self, donor_service, create_donor):
        for i in range(4):
            create_donor(full_name=f"Smith {i}")
        assert len(donor_service.search_by_name("smith", limit=3)) == 3

    @pytest.mark.parametrize("fragment", ["", "   "])
    def test_blank_fragment(self, donor_service, create_donor, fragment):
        create_donor(full_name="Anyone")
        assert donor_service.search_by_name(fragment) == ()

    def test_list_newest_first(self, donor_service, create_donor, clock):
        first = create_donor(full_name="First")
        clock.advance(60)
        second = create_donor(full_name="Second")
        clock.advance(60)
        third = create_donor(full_name="Third")

        assert [d.id for d in donor_service.list_donors()] == [third.id, second.id, first.id]
