import pytest

from aiready.core.errors import AuthorizationError, ResourceNotFoundError, ValidationError
from aiready.services import feedback as fb


def _submit(db, user, **kw):
    data = {"title": "Export button", "description": "Allow CSV export of the inventory"}
    data.update(kw)
    return fb.submit_feedback(db, user, data)


def test_submit_defaults(db, user):
    row = _submit(db, user)
    assert row.feedback_id.startswith("fb_")
    assert row.status == "pending"
    assert row.category == "other"
    assert row.priority == "medium"
    assert row.votes == 0
    assert row.is_public is False


def test_invalid_choices_rejected(db, user):
    with pytest.raises(ValidationError):
        _submit(db, user, category="gossip")
    with pytest.raises(ValidationError):
        _submit(db, user, priority="urgent!!")


def test_unknown_system_link_rejected(db, user, make_system):
    with pytest.raises(ResourceNotFoundError):
        _submit(db, user, ai_system_id=999)

    s = make_system()
    assert _submit(db, user, ai_system_id=s.id).ai_system_id == s.id


def test_visibility(db, user, other_user, officer):
    private = _submit(db, user, title="mine")
    public = _submit(db, other_user, title="public", is_public=True)
    _submit(db, other_user, title="hidden")

    assert {r.title for r in fb.list_feedback(db, user)} == {"mine", "public"}
    assert len(fb.list_feedback(db, officer)) == 3

    assert fb.get_feedback_or_404(db, public.feedback_id, user).title == "public"
    assert fb.get_feedback_or_404(db, private.feedback_id, officer).title == "mine"
    with pytest.raises(ResourceNotFoundError):
        fb.get_feedback_or_404(db, private.feedback_id, other_user)


def test_votes_order_listing(db, user):
    a = _submit(db, user, title="a")
    b = _submit(db, user, title="b")
    fb.vote_feedback(db, b)
    fb.vote_feedback(db, b)
    fb.vote_feedback(db, a)
    assert [r.title for r in fb.list_feedback(db, user)] == ["b", "a"]
    assert b.votes == 2


def test_respond(db, user, officer):
    row = _submit(db, user)
    with pytest.raises(AuthorizationError):
        fb.respond_to_feedback(db, row, response="no", status="rejected", user=user)
    with pytest.raises(ValidationError):
        fb.respond_to_feedback(db, row, response="?", status="maybe", user=officer)

    row = fb.respond_to_feedback(db, row, response="Planned for Q3", status="planned", user=officer)
    assert row.status == "planned"
    assert row.responded_by == officer.id
    assert row.responded_at is not None
    assert fb.list_feedback(db, officer, status="planned") == [row]
