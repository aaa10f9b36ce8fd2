import pytest

from aiready.core.errors import ResourceNotFoundError, ValidationError
from aiready.models.training import TrainingModule
from aiready.services import training


def test_modules_are_seeded_once(db):
    assert training.ensure_modules(db) == 6
    assert training.ensure_modules(db) == 0
    assert [m.id for m in training.list_modules(db)] == ["1", "2", "3", "4", "5", "6"]
    assert db.query(TrainingModule).count() == 6


def test_missing_module(db):
    with pytest.raises(ResourceNotFoundError):
        training.get_module_or_404(db, "99")


def test_static_content_and_role_fallback(db, offline_chain):
    module = training.get_module_or_404(db, "4")
    out = training.get_module_content(module, role="astronaut", chain=offline_chain)
    assert out["role"] == "user"
    assert out["source"] == "static"
    assert out["title"] == "Documentation Requirements"
    assert [s["title"] for s in out["sections"]] == ["Introduction", "Learning Objectives", "Key Concepts"]
    assert out["assessments"][0]["correct_answer"] == "Article 11"


def test_model_content_uses_snake_case_answers():
    text = (
        '{"title": "T", "sections": [{"title": "S", "content": "<p>x</p>"}], '
        '"assessments": [{"question": "Q", "options": ["a", "b"], "correctAnswer": "a"}]}'
    )
    out = training._parse_content(text)
    assert out["assessments"][0] == {"question": "Q", "options": ["a", "b"], "correct_answer": "a"}

    with pytest.raises(ValueError):
        training._parse_content('{"title": "T", "sections": []}')


def test_progress_is_clamped_and_upserted(db, user):
    row = training.track_progress(db, user, "1", 140)
    assert row.completion == 100
    row = training.track_progress(db, user, "1", "35.6")
    assert row.completion == 36

    progress = training.get_user_progress(db, user.id)
    assert list(progress) == ["1"]
    assert progress["1"]["completion"] == 36

    with pytest.raises(ValidationError):
        training.track_progress(db, user, "1", "half")


def test_score_answers():
    qs = training.questions_for("1")
    out = training.score_answers(qs, {qs[0]["question"]: "Medium Risk", qs[1]["question"]: "wrong"})
    assert out["score"] == 50
    assert out["correct"] == 1
    assert out["passed"] is False
    assert out["results"][1]["correct_answer"] == "They are prohibited"


def test_passing_assessment_completes_module(db, user):
    answers = {q["question"]: q["correct_answer"] for q in training.questions_for("4")}
    out = training.submit_assessment(db, user, "4", answers)
    assert out["score"] == 100
    assert out["passed"] is True
    assert out["completion"] == 100
    assert training.get_user_progress(db, user.id)["4"]["assessment_score"] == 100


def test_failed_assessment_keeps_completion(db, user):
    training.track_progress(db, user, "2", 40)
    out = training.submit_assessment(db, user, "2", {})
    assert out["score"] == 0
    assert out["completion"] == 40
