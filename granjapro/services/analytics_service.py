"""Production analytics: laying rate, feed conversion, weekly report, alerts.

Design Decisions:
- Thresholds and feed/egg constants come from Settings, not literals
- Daily analysis only looks at the requested day's records
- A low laying rate produces a WARNING alert that stays PENDING until resolved
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from granjapro.config import (
    DEFAULT_EGG_WEIGHT_KG,
    DEFAULT_FEED_KG_PER_BIRD,
    DEFAULT_LAYING_RATE_THRESHOLD,
)
from granjapro.models.alert import Alert, AlertType
from granjapro.models.lot import Lot
from granjapro.models.production import ProductionRecord
from granjapro.repositories.alert_repository import AlertRepository
from granjapro.repositories.lot_repository import LotRepository
from granjapro.repositories.production_repository import ProductionRepository
from granjapro.utils.helpers.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

REPORT_WINDOW_DAYS = 7


def laying_rate(total_eggs: int, live_birds: int) -> float:
    """Eggs per live bird, in percent. 0.0 when the lot has no birds."""
    if live_birds <= 0:
        return 0.0
    return total_eggs / live_birds * 100.0


class AnalyticsService:
    def __init__(
        self,
        lot_repository: LotRepository,
        production_repository: ProductionRepository,
        alert_repository: AlertRepository,
        laying_rate_threshold: float = DEFAULT_LAYING_RATE_THRESHOLD,
        feed_kg_per_bird: float = DEFAULT_FEED_KG_PER_BIRD,
        egg_weight_kg: float = DEFAULT_EGG_WEIGHT_KG,
    ):
        self.lot_repository = lot_repository
        self.production_repository = production_repository
        self.alert_repository = alert_repository
        self.laying_rate_threshold = laying_rate_threshold
        self.feed_kg_per_bird = feed_kg_per_bird
        self.egg_weight_kg = egg_weight_kg

    def laying_rate(self, total_eggs: int, live_birds: int) -> float:
        return laying_rate(total_eggs, live_birds)

    def run_daily_analysis(self, lot_id: str, day: Optional[date] = None) -> Optional[Alert]:
        """Check one day of a lot's production against the laying-rate threshold.

        Returns:
            The WARNING alert saved when the rate is under the threshold,
            None when the rate is fine or nothing was recorded that day

        Raises:
            ValidationError: Blank lot id
            NotFoundError: Unknown lot
        """
        lot = self._load_lot(lot_id)
        day = day or date.today()
        records = self._records_on(lot.lot_id, day)
        if not records:
            logger.info("No production for lot %s on %s, analysis skipped", lot.code, day)
            return None

        total = sum(record.total_eggs for record in records)
        rate = laying_rate(total, lot.current_count)
        if rate >= self.laying_rate_threshold:
            return None

        alert = Alert(
            alert_date=day,
            lot_id=lot.lot_id,
            alert_type=AlertType.WARNING,
            message=(
                f"Low production detected. Laying rate: {rate:.2f}% "
                f"(expected: >={self.laying_rate_threshold:.0f}%)"
            ),
        )
        self.alert_repository.save(alert)
        logger.warning("Lot %s laying rate %.2f%% under threshold", lot.code, rate)
        return alert

    def feed_conversion_ratio(self, lot_id: str, day: Optional[date] = None) -> float:
        """Feed consumed (kg) per kg of eggs produced on ``day``."""
        lot = self._load_lot(lot_id)
        records = self._records_on(lot.lot_id, day or date.today())
        egg_mass_kg = sum(record.total_eggs for record in records) * self.egg_weight_kg
        if egg_mass_kg <= 0:
            return 0.0
        feed_kg = lot.current_count * self.feed_kg_per_bird
        return feed_kg / egg_mass_kg

    def weekly_report(self, lot_id: str, today: Optional[date] = None) -> str:
        """Plain-text production summary for the last seven days."""
        lot = self._load_lot(lot_id)
        today = today or date.today()
        since = today - timedelta(days=REPORT_WINDOW_DAYS)
        records = [
            record for record in self.production_repository.list_by_lot(lot.lot_id)
            if since <= record.record_date <= today
        ]

        total = sum(record.total_eggs for record in records)
        days_recorded = len({record.record_date for record in records})
        daily_average = total / days_recorded if days_recorded else 0.0
        live_birds = lot.current_count
        average_rate = (
            total / live_birds / days_recorded * 100
            if live_birds > 0 and days_recorded
            else 0.0
        )

        lines = [
            "=" * 52,
            "WEEKLY PRODUCTION REPORT",
            "=" * 52,
            f"Lot:                    {lot.code} ({lot.lot_id})",
            f"Period:                 {since.isoformat()} to {today.isoformat()}",
            "-" * 52,
            f"Total eggs:             {total:>8d}",
            f"Days with records:      {days_recorded:>8d}",
            f"Daily average:          {daily_average:>8.0f} eggs",
            f"Live birds:             {live_birds:>8d}",
            f"Average laying rate:    {average_rate:>8.2f}%",
            "=" * 52,
        ]
        return "\n".join(lines) + "\n"

    def critical_alerts(self) -> List[Alert]:
        return self.alert_repository.find_critical_pending()

    def pending_alert_count(self, lot_id: str) -> int:
        if not lot_id or not lot_id.strip():
            return 0
        return len(self.alert_repository.find_pending_by_lot(lot_id))

    def alerts_for_lot(self, lot_id: str) -> List[Alert]:
        return self.alert_repository.find_by_lot(lot_id)

    def alerts_between(self, start: date, end: date) -> List[Alert]:
        if start > end:
            raise ValidationError("Start of the date range must not be after its end")
        return self.alert_repository.find_by_date_range(start, end)

    def alerts_of_type(self, alert_type: AlertType) -> List[Alert]:
        return self.alert_repository.find_by_type(alert_type)

    def alert_summary(self) -> Dict[str, int]:
        """Alert counts per type plus the number still pending."""
        summary = {
            alert_type.value: self.alert_repository.count_by_type(alert_type)
            for alert_type in AlertType
        }
        summary["PENDING"] = self.alert_repository.count_pending()
        return summary

    def resolve_alert(self, alert_id: str) -> Alert:
        alert = self.alert_repository.resolve(alert_id)
        logger.info("Alert %s resolved", alert_id)
        return alert

    def _load_lot(self, lot_id: str) -> Lot:
        if not lot_id or not lot_id.strip():
            raise ValidationError("Lot id must not be empty")
        lot = self.lot_repository.get_by_id(lot_id)
        if lot is None:
            raise NotFoundError(f"No lot with id {lot_id}")
        return lot

    def _records_on(self, lot_id: str, day: date) -> List[ProductionRecord]:
        return [
            record for record in self.production_repository.list_by_lot(lot_id)
            if record.record_date == day
        ]
