from datetime import datetime

import pytest

from aiready.core.errors import BusinessLogicError, ResourceNotFoundError
from aiready.models.activity import Activity
from aiready.models.deadline import Deadline
from aiready.services import risk_assessment as ra


def test_add_months_clamps_day():
    assert ra.add_months(datetime(2025, 1, 31), 1) == datetime(2025, 2, 28)
    assert ra.add_months(datetime(2024, 8, 31), 6) == datetime(2025, 2, 28)
    assert ra.add_months(datetime(2025, 11, 15), 3) == datetime(2026, 2, 15)


def test_overall_score_from_areas_or_level():
    assert ra.overall_assessment_score([{"score": 60}, {"score": 81}, {"score": "n/a"}], "high") == 70
    assert ra.overall_assessment_score([], "limited") == 40
    assert ra.overall_assessment_score(None, "whatever") == 20


def test_normalize_level():
    assert ra.normalize_level("High Risk") == "high"
    assert ra.normalize_level("???") == "minimal"
    assert ra.system_level_label("unacceptable") == "Unacceptable"


def test_create_sets_defaults(db, make_system, user):
    s = make_system()
    row = ra.create_assessment(db, s.id, {"risk_level": "High", "risk_areas": [{"score": 50}, {"score": 70}]}, user)

    assert row.assessment_id.startswith("ra_")
    assert row.status == "draft"
    assert row.risk_level == "high"
    assert row.risk_score == 60
    assert "conformity_declaration" in row.required_documentation
    assert db.query(Activity).filter(Activity.type == "risk_assessment_created").count() == 1


def test_create_for_missing_system(db):
    with pytest.raises(ResourceNotFoundError):
        ra.create_assessment(db, 999, {})


def test_full_workflow_updates_system(db, make_system, user, officer):
    s = make_system()
    row = ra.create_assessment(db, s.id, {"risk_level": "limited", "risk_score": 45}, user)
    row = ra.update_assessment(db, row, {"status": "in_progress", "summary_notes": "draft notes"}, user)
    assert row.status == "in_progress"

    row = ra.submit_assessment(db, row, None, user)
    assert row.status == "completed"
    assert row.summary_notes == "draft notes"

    row = ra.approve_assessment(db, row, "Looks good", officer)
    assert row.status == "approved"
    assert row.approved_by == officer.id
    assert row.summary_notes.endswith("Approval Notes: Looks good")

    db.refresh(s)
    assert s.risk_level == "Limited"
    assert s.risk_score == 45
    assert s.last_assessment_date is not None


def test_illegal_transitions(db, make_system, user, officer):
    s = make_system()
    row = ra.create_assessment(db, s.id, {}, user)

    with pytest.raises(BusinessLogicError):
        ra.approve_assessment(db, row, None, officer)
    with pytest.raises(BusinessLogicError):
        ra.reject_assessment(db, row, "no", officer)

    ra.submit_assessment(db, row, "ready", user)
    with pytest.raises(BusinessLogicError):
        ra.update_assessment(db, row, {"risk_score": 10}, user)
    with pytest.raises(BusinessLogicError):
        ra.submit_assessment(db, row, None, user)

    row = ra.reject_assessment(db, row, "missing evidence", officer)
    assert row.status == "rejected"
    assert "Rejection Reason: missing evidence" in row.summary_notes


def test_run_ai_assessment_offline(db, make_system, user, offline_chain):
    s = make_system(
        name="Loan scorer",
        description="Credit decisions for consumer loans",
        uses_personal_data=True,
    )
    row = ra.run_ai_assessment(db, s.id, user, chain=offline_chain)

    assert row.status == "draft"
    assert row.risk_level == "high"
    assert row.risk_score == 70
    assert row.prohibited_uses_checked is True
    assert row.prohibited_uses_results["is_compliant"] is True
    assert row.analysis_source == "static"
    assert row.analysis["analysis_method"] == "rule_based"


def test_prohibited_findings_force_unacceptable(db, make_system, offline_chain):
    s = make_system(description="Citizen score used to rank residents")
    row = ra.run_ai_assessment(db, s.id, chain=offline_chain)
    assert row.risk_level == "unacceptable"
    assert row.risk_score == 90
    assert row.required_documentation == []


def test_schedule_reassessment(db, make_system, user):
    s = make_system(name="Chatbot")
    latest = ra.create_assessment(db, s.id, {}, user)

    d = ra.schedule_reassessment(db, s.id, "quarterly", user, now=datetime(2025, 11, 30, 9, 0))
    assert d.title == "Reassessment of Chatbot"
    assert d.type == "reassessment"
    assert d.date == datetime(2026, 2, 28, 9, 0)

    db.refresh(latest)
    assert latest.next_review_date == d.date

    d2 = ra.schedule_reassessment(db, s.id, "fortnightly", now=datetime(2025, 1, 1))
    assert d2.date == datetime(2025, 7, 1)
    assert db.query(Deadline).count() == 2


def test_latest_for_system(db, make_system):
    s = make_system()
    assert ra.latest_for_system(db, s.id) is None
    ra.create_assessment(db, s.id, {})
    second = ra.create_assessment(db, s.id, {})
    assert ra.latest_for_system(db, s.id).assessment_id == second.assessment_id
    with pytest.raises(ResourceNotFoundError):
        ra.get_assessment_or_404(db, "ra_missing")
