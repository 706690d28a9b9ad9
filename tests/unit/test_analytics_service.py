import re
from datetime import date, timedelta

import pytest

from granjapro.models.alert import Alert, AlertStatus, AlertType
from granjapro.services.analytics_service import AnalyticsService, laying_rate
from granjapro.utils.helpers.exceptions import NotFoundError, ValidationError

DAY = date(2024, 5, 10)


def test_laying_rate():
    assert laying_rate(70, 100) == pytest.approx(70.0)
    assert laying_rate(10, 0) == 0.0


def test_low_rate_raises_warning_alert(analytics_service, production_service, lot):
    production_service.register_production(lot.lot_id, 60, 0, DAY)

    alert = analytics_service.run_daily_analysis(lot.lot_id, DAY)

    assert alert is not None
    assert alert.alert_type is AlertType.WARNING
    assert alert.status is AlertStatus.PENDING
    assert "60.00%" in alert.message
    assert analytics_service.pending_alert_count(lot.lot_id) == 1


def test_rate_at_threshold_is_fine(analytics_service, production_service, lot):
    production_service.register_production(lot.lot_id, 40, 0, DAY)
    production_service.register_production(lot.lot_id, 30, 0, DAY)

    assert analytics_service.run_daily_analysis(lot.lot_id, DAY) is None
    assert analytics_service.pending_alert_count(lot.lot_id) == 0


def test_only_the_requested_day_counts(analytics_service, production_service, lot):
    production_service.register_production(lot.lot_id, 95, 0, DAY - timedelta(days=1))

    assert analytics_service.run_daily_analysis(lot.lot_id, DAY) is None


def test_configured_threshold(lot_repository, production_repository, alert_repository,
                              production_service, lot):
    strict = AnalyticsService(lot_repository, production_repository, alert_repository,
                              laying_rate_threshold=90.0)
    production_service.register_production(lot.lot_id, 85, 0, DAY)

    assert strict.run_daily_analysis(lot.lot_id, DAY) is not None


def test_analysis_needs_existing_lot(analytics_service):
    with pytest.raises(ValidationError):
        analytics_service.run_daily_analysis(" ")
    with pytest.raises(NotFoundError):
        analytics_service.run_daily_analysis("missing")


def test_feed_conversion_ratio(analytics_service, production_service, lot):
    assert analytics_service.feed_conversion_ratio(lot.lot_id, DAY) == 0.0

    production_service.register_production(lot.lot_id, 60, 0, DAY)

    # 100 birds * 0.115 kg / (60 eggs * 0.060 kg)
    assert analytics_service.feed_conversion_ratio(lot.lot_id, DAY) == pytest.approx(11.5 / 3.6)


def test_weekly_report(analytics_service, production_service, lot):
    production_service.register_production(lot.lot_id, 80, 0, DAY)
    production_service.register_production(lot.lot_id, 90, 0, DAY - timedelta(days=2))
    production_service.register_production(lot.lot_id, 70, 0, DAY - timedelta(days=30))

    report = analytics_service.weekly_report(lot.lot_id, today=DAY)

    assert "WEEKLY PRODUCTION REPORT" in report
    assert lot.code in report
    assert re.search(r"Total eggs:\s+170\n", report)
    assert re.search(r"Days with records:\s+2\n", report)
    assert "85.00%" in report


def test_alert_lifecycle(analytics_service, production_service, lot):
    production_service.register_production(lot.lot_id, 20, 0, DAY)
    alert = analytics_service.run_daily_analysis(lot.lot_id, DAY)

    resolved = analytics_service.resolve_alert(alert.alert_id)

    assert resolved.status is AlertStatus.RESOLVED
    assert analytics_service.pending_alert_count(lot.lot_id) == 0
    assert [a.alert_id for a in analytics_service.alerts_for_lot(lot.lot_id)] == [alert.alert_id]


def test_resolve_unknown_alert(analytics_service):
    with pytest.raises(NotFoundError):
        analytics_service.resolve_alert("missing")


def test_pending_count_blank_lot(analytics_service):
    assert analytics_service.pending_alert_count("") == 0


def test_critical_alerts(analytics_service, alert_repository, lot):
    critical = alert_repository.save(
        Alert(lot_id=lot.lot_id, alert_type=AlertType.CRITICAL, message="Water line down")
    )
    alert_repository.save(Alert(lot_id=lot.lot_id, alert_type=AlertType.INFO, message="Vaccinated"))

    assert [a.alert_id for a in analytics_service.critical_alerts()] == [critical.alert_id]


def test_alert_queries(analytics_service, alert_repository, lot):
    alert_repository.save(Alert(lot_id=lot.lot_id, alert_type=AlertType.WARNING,
                                message="Low rate", alert_date=DAY - timedelta(days=3)))
    latest = alert_repository.save(Alert(lot_id=lot.lot_id, alert_type=AlertType.WARNING,
                                         message="Low rate", alert_date=DAY))
    alert_repository.save(Alert(lot_id=lot.lot_id, alert_type=AlertType.INFO,
                                message="Moved pen", alert_date=DAY - timedelta(days=10)))
    alert_repository.resolve(latest.alert_id)

    recent = analytics_service.alerts_between(DAY - timedelta(days=5), DAY)
    assert [a.alert_date for a in recent] == [DAY, DAY - timedelta(days=3)]
    assert len(analytics_service.alerts_of_type(AlertType.INFO)) == 1
    assert analytics_service.alert_summary() == {
        "CRITICAL": 0, "WARNING": 2, "INFO": 1, "PENDING": 2,
    }

    with pytest.raises(ValidationError):
        analytics_service.alerts_between(DAY, DAY - timedelta(days=1))
