"""
Tests for InventorySelector and AlertSelector.

Covers:
- stock_levels(): all 8 types in canonical order, low flag
- reconcile(): counter vs live records under both drift directions
- scarcity_scan(): strict threshold, policy default, zero threshold
- expiry_scan(): window, severity, ordering, donor name, clock-driven
- inventory_overview(): one consistent read
- negative parameters rejected
"""

from datetime import date

import pytest

from bloodbank_kernel.domain.alerts import ExpirySeverity
from bloodbank_kernel.domain.blood_types import CANONICAL_ORDER, BloodType
from bloodbank_kernel.domain.policy import InventoryPolicy
from bloodbank_kernel.exceptions import InvalidAlertParameterError
from bloodbank_kernel.selectors.alert_selector import AlertSelector
from bloodbank_kernel.selectors.inventory_selector import InventorySelector


class TestStockLevels:

    def test_fresh_store_has_eight_zero_rows(self, inventory_selector):
        levels = inventory_selector.stock_levels()

        assert [level.blood_type for level in levels] == list(CANONICAL_ORDER)
        assert all(level.unit_count == 0 for level in levels)
        assert all(level.is_low for level in levels)

    def test_low_flag_uses_policy_threshold(self, session, set_stock):
        set_stock("A+", 3)
        set_stock("O-", 2)
        selector = InventorySelector(session, policy=InventoryPolicy(low_stock_threshold=3))

        flags = {level.blood_type: level.is_low for level in selector.stock_levels()}

        assert flags[BloodType.A_POS] is False
        assert flags[BloodType.O_NEG] is True

    def test_unit_count(self, inventory_selector, set_stock):
        set_stock("AB-", 7)
        assert inventory_selector.unit_count("ab-") == 7


class TestReconcile:

    def test_consistent_after_records(self, record_donation, inventory_selector):
        record_donation(blood_type="B+")
        record_donation(blood_type="B+")

        by_type = {r.blood_type: r for r in inventory_selector.reconcile()}

        assert by_type[BloodType.B_POS].unit_count == 2
        assert by_type[BloodType.B_POS].live_donations == 2
        assert all(r.is_consistent for r in by_type.values())

    def test_counter_only_dispatch_leaves_records_behind(
        self, record_donation, inventory_service, medical_actor, inventory_selector
    ):
        record_donation(blood_type="O+")
        inventory_service.dispatch_unit(medical_actor, "O+")

        (o_pos,) = [r for r in inventory_selector.reconcile() if r.blood_type is BloodType.O_POS]

        assert o_pos.unit_count == 0
        assert o_pos.live_donations == 1
        assert o_pos.drift == -1

    def test_legacy_stock_without_records(self, inventory_selector, set_stock):
        set_stock("A-", 4)
        (a_neg,) = [r for r in inventory_selector.reconcile() if r.blood_type is BloodType.A_NEG]
        assert a_neg.drift == 4


class TestScarcityScan:

    def test_reference_example(self, alert_selector, set_stock):
        """threshold 5 with {O-: 2, A+: 8} and every other type at 5+."""
        for bt in BloodType:
            set_stock(bt, 5)
        set_stock("O-", 2)
        set_stock("A+", 8)

        assert alert_selector.scarcity_scan(5) == frozenset({BloodType.O_NEG})

    def test_default_threshold_from_policy(self, session, clock, set_stock):
        for bt in BloodType:
            set_stock(bt, 2)
        set_stock("B-", 1)
        selector = AlertSelector(session, clock=clock, policy=InventoryPolicy(low_stock_threshold=2))

        assert selector.scarcity_scan() == frozenset({BloodType.B_NEG})

    def test_zero_threshold_is_empty(self, alert_selector):
        assert alert_selector.scarcity_scan(0) == frozenset()

    def test_alerts_carry_counts(self, alert_selector, set_stock):
        set_stock("AB+", 1)
        alerts = {a.blood_type: a for a in alert_selector.scarcity_alerts(3)}
        assert alerts[BloodType.AB_POS].unit_count == 1
        assert alerts[BloodType.AB_POS].shortfall == 2

    def test_negative_threshold(self, alert_selector):
        with pytest.raises(InvalidAlertParameterError) as exc_info:
            alert_selector.scarcity_scan(-1)
        assert exc_info.value.parameter == "threshold"


class TestExpiryScan:

    def test_reference_example(self, alert_selector, record_donation, create_donor):
        """today 2024-06-10, lookahead 7."""
        donor = create_donor(blood_type="A+", full_name="Ada Lovelace")
        expired = record_donation(donor=donor, expiry_date=date(2024, 6, 5), collection_date=date(2024, 5, 1))
        soon = record_donation(donor=donor, expiry_date=date(2024, 6, 15))
        record_donation(donor=donor, expiry_date=date(2024, 6, 20))

        alerts = alert_selector.expiry_scan(7)

        assert [a.donation_id for a in alerts] == [expired.donation_id, soon.donation_id]
        assert alerts[0].severity is ExpirySeverity.EXPIRED
        assert alerts[1].severity is ExpirySeverity.EXPIRING_SOON
        assert alerts[0].donor_name == "Ada Lovelace"
        assert alerts[0].blood_type is BloodType.A_POS

    def test_default_lookahead_is_seven_days(self, alert_selector, record_donation):
        edge = record_donation(expiry_date=date(2024, 6, 17))
        record_donation(expiry_date=date(2024, 6, 18))

        assert [a.donation_id for a in alert_selector.expiry_scan()] == [edge.donation_id]

    def test_zero_lookahead(self, alert_selector, record_donation):
        today = record_donation(expiry_date=date(2024, 6, 10))
        record_donation(expiry_date=date(2024, 6, 11))

        alerts = alert_selector.expiry_scan(0)

        assert [a.donation_id for a in alerts] == [today.donation_id]
        assert alerts[0].severity is ExpirySeverity.EXPIRING_SOON

    def test_follows_the_clock(self, alert_selector, record_donation, clock):
        receipt = record_donation(expiry_date=date(2024, 6, 12))
        clock.advance_days(3)

        (alert,) = alert_selector.expiry_scan(0)

        assert alert.donation_id == receipt.donation_id
        assert alert.severity is ExpirySeverity.EXPIRED
        assert alert.days_remaining == -1

    def test_disposed_records_drop_out(
        self, alert_selector, record_donation, inventory_service, medical_actor
    ):
        receipt = record_donation(blood_type="O-", expiry_date=date(2024, 6, 1), collection_date=date(2024, 5, 1))
        inventory_service.dispose_expired(medical_actor, receipt.donation_id, "O-")

        assert alert_selector.expiry_scan() == ()

    def test_negative_lookahead(self, alert_selector):
        with pytest.raises(InvalidAlertParameterError) as exc_info:
            alert_selector.expiry_scan(-3)
        assert exc_info.value.parameter == "lookahead_days"

    def test_lookahead_past_date_range(self, alert_selector):
        with pytest.raises(InvalidAlertParameterError) as exc_info:
            alert_selector.expiry_scan(10**8)
        assert exc_info.value.code == "INVALID_ALERT_PARAMETER"


class TestInventoryOverview:

    def test_overview(self, alert_selector, record_donation, set_stock):
        record_donation(blood_type="O-", expiry_date=date(2024, 6, 12))
        set_stock("A+", 9)

        overview = alert_selector.inventory_overview()

        assert overview.as_of == date(2024, 6, 10)
        assert len(overview.stock_levels) == 8
        assert overview.total_units == 10
        low = {a.blood_type for a in overview.scarcity_alerts}
        assert BloodType.A_POS not in low
        assert BloodType.O_NEG in low
        assert len(overview.expiry_alerts) == 1