import logging
from datetime import date

from roadworks.background.notifier import LoggingNotifier, compose_alert
from roadworks.common.models import AlertEvent, LatLon, SavedLocation
from roadworks.pipeline.classify import ImpactCategory

HOME = SavedLocation(id="1", label="Maison", point=LatLon(45.5, -73.56))


def _event(reason="Construction/rénovation", start=date(2026, 10, 20)) -> AlertEvent:
    return AlertEvent(location_id="1", obstruction_permit_id="P-7", reason=reason, obstruction_start_date=start)


def test_compose_alert_names_location_reason_and_date():
    title, body = compose_alert(_event(), HOME)
    assert title == "Travaux près de Maison"
    assert body == "Construction/rénovation à venir le 2026-10-20"


def test_compose_alert_mentions_impact_and_falls_back_on_missing_reason():
    _, body = compose_alert(_event(reason=None), HOME, ImpactCategory.SIDEWALK_ONLY)
    assert body == "Travaux à venir le 2026-10-20 (Trottoir barré)"


def test_logging_notifier_emits_notify_event(caplog):
    logger = logging.getLogger("roadworks.test-notifier")
    logger.propagate = True

    with caplog.at_level(logging.INFO, logger="roadworks.test-notifier"):
        LoggingNotifier(logger, run_id="run-n").notify("Travaux près de Maison", "Travaux à venir")

    [record] = caplog.records
    assert record.event == "NOTIFY"
    assert record.run_id == "run-n"
    assert record.getMessage() == "Travaux près de Maison: Travaux à venir"
