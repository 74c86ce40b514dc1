"""
Module: bloodbank_kernel.selectors.alert_selector
Responsibility: Derive scarcity and expiry alerts from the current store.
    Recomputed on every call; nothing is cached and nothing runs on a timer.
Architecture position: Kernel > Selectors.  Feeds domain.alerts with rows read
    from stock_levels and donations.

Invariants enforced:
    - "Today" comes from the injected Clock, never from the system directly.
    - Defaults for threshold and lookahead come from the InventoryPolicy.

Failure modes:
    - InvalidAlertParameterError for a negative threshold or lookahead.
    - StockLevelMissingError when a seeded stock row is absent.
"""

from sqlalchemy import select

from bloodbank_kernel.domain.alerts import (
    ExpiryAlert,
    ExpiryCandidate,
    ScarcityAlert,
    expiry_horizon,
    scan_expiry,
    scan_scarcity,
)
from bloodbank_kernel.domain.blood_types import BloodType
from bloodbank_kernel.domain.clock import Clock, SystemClock
from bloodbank_kernel.domain.dtos import InventoryOverview
from bloodbank_kernel.domain.policy import DEFAULT_POLICY, InventoryPolicy, check_non_negative
from bloodbank_kernel.logging_config import get_logger
from bloodbank_kernel.models.donation import Donation
from bloodbank_kernel.models.donor import Donor
from bloodbank_kernel.selectors.base import BaseSelector
from bloodbank_kernel.selectors.inventory_selector import InventorySelector

logger = get_logger("selectors.alerts")


class AlertSelector(BaseSelector):
    """
    Scarcity and expiry alerts.

    Usage:
        alerts = AlertSelector(session, clock=SystemClock())
        low = alerts.scarcity_scan()            # frozenset of BloodType
        soon = alerts.expiry_scan(lookahead_days=3)
    """

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        policy: InventoryPolicy | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._policy = policy or DEFAULT_POLICY
        self._inventory = InventorySelector(session, policy=self._policy)

    def scarcity_scan(self, threshold: int | None = None) -> frozenset[BloodType]:
        """Blood types whose count is below ``threshold``."""
        return frozenset(alert.blood_type for alert in self.scarcity_alerts(threshold))

    def scarcity_alerts(self, threshold: int | None = None) -> tuple[ScarcityAlert, ...]:
        limit = self._resolve("threshold", threshold, self._policy.low_stock_threshold)
        return scan_scarcity(self._inventory.counts(), limit)

    def expiry_scan(self, lookahead_days: int | None = None) -> tuple[ExpiryAlert, ...]:
        """Live records expiring on or before today + lookahead, soonest first."""
        lookahead = self._resolve(
            "lookahead_days", lookahead_days, self._policy.expiry_lookahead_days
        )
        today = self._clock.today()
        horizon = expiry_horizon(today, lookahead)
        rows = self.session.execute(
            select(
                Donation.id,
                Donation.donor_id,
                Donor.full_name,
                Donation.blood_type,
                Donation.volume_ml,
                Donation.expiry_date,
            )
            .join(Donor, Donor.id == Donation.donor_id)
            .where(Donation.expiry_date <= horizon)
            .order_by(Donation.expiry_date, Donation.id)
        ).all()
        candidates = [
            ExpiryCandidate(
                donation_id=row[0],
                donor_id=row[1],
                donor_name=row[2],
                blood_type=BloodType(row[3]),
                volume_ml=row[4],
                expiry_date=row[5],
            )
            for row in rows
        ]
        return scan_expiry(candidates, today, lookahead)

    def inventory_overview(self) -> InventoryOverview:
        """Stock levels plus both alert kinds, read in this session."""
        overview = InventoryOverview(
            as_of=self._clock.today(),
            stock_levels=self._inventory.stock_levels(),
            scarcity_alerts=self.scarcity_alerts(),
            expiry_alerts=self.expiry_scan(),
        )
        logger.debug(
            "inventory_overview_computed",
            extra={
                "as_of": overview.as_of,
                "scarcity_count": len(overview.scarcity_alerts),
                "expiry_count": len(overview.expiry_alerts),
            },
        )
        return overview

    @staticmethod
    def _resolve(name: str, value: int | None, default: int) -> int:
        if value is None:
            return default
        return check_non_negative(name, value)
