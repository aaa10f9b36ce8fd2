from datetime import datetime, timedelta

from aiready.models.alert import Alert, MonitoringCheck
from aiready.models.deadline import Deadline
from aiready.services.monitoring import (
    flag_due_reassessments,
    list_alerts,
    perform_monitoring_check,
    resolve_alert,
    run_monitoring,
)


def test_first_check_has_no_baseline(db, make_system):
    s = make_system(risk_level="High", doc_completeness=30)
    out = perform_monitoring_check(db, s)

    assert out["system_id"] == s.system_id
    assert out["previous_score"] is None
    assert out["score_delta"] is None
    assert {a["type"] for a in out["alerts"]} == {"high_risk_low_compliance", "missing_documentation"}
    assert all(st["status"] == "unchanged" for st in out["statuses"])
    assert db.query(MonitoringCheck).count() == 1
    assert db.query(Alert).filter(Alert.ai_system_id == s.id).count() == 2


def test_score_drop_raises_alert(db, make_system):
    s = make_system(doc_completeness=100)
    first = perform_monitoring_check(db, s)
    assert first["alerts"] == []

    s.doc_completeness = 0
    db.commit()
    second = perform_monitoring_check(db, s)

    assert second["previous_score"] == first["compliance_score"]
    assert second["score_delta"] == -15
    types = [a["type"] for a in second["alerts"]]
    assert "score_decrease" in types
    statuses = {st["area"]: st["status"] for st in second["statuses"]}
    assert statuses["Technical Documentation"] == "declined"
    assert statuses["Transparency"] == "unchanged"


def test_threshold_is_configurable(db, make_system):
    s = make_system(doc_completeness=100)
    perform_monitoring_check(db, s)
    s.doc_completeness = 0
    db.commit()
    out = perform_monitoring_check(db, s, alert_threshold=20)
    assert "score_decrease" not in [a["type"] for a in out["alerts"]]


def test_run_monitoring_only_checks_active(db, make_system):
    make_system(status="active", doc_completeness=90)
    make_system(status="retired")
    assert run_monitoring(db) == 1


def test_due_reassessments_flagged_once(db, make_system):
    s = make_system()
    now = datetime(2025, 3, 1, 8, 0)
    db.add_all(
        [
            Deadline(title="Reassessment of A", date=now - timedelta(days=1), type="reassessment", ai_system_id=s.id),
            Deadline(title="Reassessment of B", date=now + timedelta(days=30), type="reassessment", ai_system_id=s.id),
            Deadline(title="Audit", date=now - timedelta(days=1), type="audit", ai_system_id=s.id),
        ]
    )
    db.commit()

    assert flag_due_reassessments(db, now=now) == 1
    assert flag_due_reassessments(db, now=now) == 0
    alert = db.query(Alert).filter(Alert.type == "reassessment_due").one()
    assert alert.message == "Reassessment of A is due on 2025-02-28"

    assert flag_due_reassessments(db, now=now, lead_days=30) == 1


def test_list_and_resolve_alerts(db, make_system):
    s = make_system(doc_completeness=10)
    perform_monitoring_check(db, s)
    (alert,) = list_alerts(db, ai_system_id=s.id)

    resolve_alert(db, alert)
    assert alert.resolved_at is not None
    assert list_alerts(db, ai_system_id=s.id) == []
    assert len(list_alerts(db, ai_system_id=s.id, include_resolved=True)) == 1
