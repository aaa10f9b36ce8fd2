from datetime import datetime, timedelta

from aiready.models.alert import Alert
from aiready.models.ai_system import AISystem
from aiready.models.deadline import Deadline
from aiready.worker.scheduler import make_scheduler, run_daily_monitoring


def test_daily_monitoring_runs_both_steps(session_factory):
    db = session_factory()
    s = AISystem(system_id="AI-SYS-0001", name="Chatbot", status="active", doc_completeness=20)
    db.add(s)
    db.flush()
    db.add(
        Deadline(
            title="Reassessment of Chatbot",
            date=datetime.utcnow() - timedelta(days=2),
            type="reassessment",
            ai_system_id=s.id,
        )
    )
    db.commit()
    db.close()

    assert run_daily_monitoring(session_factory) == {"systems_checked": 1, "reassessments_due": 1}

    db = session_factory()
    types = sorted(a.type for a in db.query(Alert).all())
    db.close()
    assert types == ["missing_documentation", "reassessment_due"]


def test_failing_step_counts_as_zero(session_factory, monkeypatch):
    def boom(db):
        raise RuntimeError("db down")

    monkeypatch.setattr("aiready.worker.scheduler.run_monitoring", boom)
    assert run_daily_monitoring(session_factory)["systems_checked"] == 0


def test_make_scheduler_registers_daily_job():
    sched = make_scheduler()
    job = sched.get_job("daily_monitoring")
    assert job is not None
    assert job.func is run_daily_monitoring
