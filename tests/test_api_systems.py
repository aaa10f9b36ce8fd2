from aiready.models.activity import Activity


def _create(client, headers, **kw):
    payload = {"name": "Support chatbot", "department": "Customer Service"}
    payload.update(kw)
    return client.post("/api/v1/systems", json=payload, headers=headers)


def test_create_generates_system_id(client, auth_headers, user):
    r = _create(client, auth_headers)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["system_id"] == "AI-SYS-0001"
    assert body["status"] == "active"
    assert body["created_by"] == user.id

    r = _create(client, auth_headers, name="Second")
    assert r.json()["system_id"] == "AI-SYS-0002"


def test_explicit_system_id_is_kept(client, auth_headers):
    r = _create(client, auth_headers, system_id="HR-7")
    assert r.json()["system_id"] == "HR-7"

    r = _create(client, auth_headers, name="Duplicate", system_id="HR-7")
    assert r.status_code == 400
    assert r.json()["error"]["type"] == "validation_error"
    assert r.json()["error"]["details"] == {"field": "system_id"}


def test_validation_errors(client, auth_headers):
    r = _create(client, auth_headers, name="", doc_completeness=120)
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["message"] == "Validation failed."
    locs = {tuple(d["loc"]) for d in err["details"]}
    assert ("body", "name") in locs
    assert ("body", "doc_completeness") in locs


def test_list_filters(client, auth_headers, make_system):
    make_system(name="A", department="HR", risk_level="High")
    make_system(name="B", department="HR", status="retired")
    make_system(name="C", department="Finance")

    names = lambda r: sorted(s["name"] for s in r.json())
    assert names(client.get("/api/v1/systems", headers=auth_headers)) == ["A", "B", "C"]
    assert names(client.get("/api/v1/systems?department=HR", headers=auth_headers)) == ["A", "B"]
    assert names(client.get("/api/v1/systems?status=retired", headers=auth_headers)) == ["B"]
    assert names(client.get("/api/v1/systems?risk_level=high", headers=auth_headers)) == ["A"]


def test_get_and_update(client, db, auth_headers, make_system):
    s = make_system(name="Old name")
    r = client.patch(f"/api/v1/systems/{s.id}", json={"name": "New name", "doc_completeness": 80}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["name"] == "New name"
    assert r.json()["doc_completeness"] == 80

    r = client.get(f"/api/v1/systems/{s.id}", headers=auth_headers)
    assert r.json()["name"] == "New name"

    act = db.query(Activity).filter(Activity.type == "system_updated").one()
    assert act.meta["fields"] == ["doc_completeness", "name"]


def test_update_rejects_null_for_required_fields(client, auth_headers, make_system):
    s = make_system(name="Kept")
    for field in ("status", "name", "doc_completeness", "humans_in_loop"):
        r = client.patch(f"/api/v1/systems/{s.id}", json={field: None}, headers=auth_headers)
        assert r.status_code == 422, field
        assert ("body", field) in {tuple(d["loc"]) for d in r.json()["error"]["details"]}

    # nullable columns can still be cleared
    r = client.patch(f"/api/v1/systems/{s.id}", json={"vendor": None, "risk_level": None}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["name"] == "Kept"
    assert r.json()["status"] == "active"


def test_missing_system_is_404(client, auth_headers):
    r = client.get("/api/v1/systems/999", headers=auth_headers)
    assert r.status_code == 404
    err = r.json()["error"]
    assert err["type"] == "resource_not_found"
    assert err["message"] == "System with ID 999 not found"


def test_delete_permissions(client, db, auth_headers, other_headers, admin_headers):
    sid = _create(client, auth_headers).json()["id"]
    assert client.delete(f"/api/v1/systems/{sid}", headers=other_headers).status_code == 403
    assert client.delete(f"/api/v1/systems/{sid}", headers=auth_headers).status_code == 204
    assert client.get(f"/api/v1/systems/{sid}", headers=auth_headers).status_code == 404

    sid = _create(client, auth_headers, name="Other").json()["id"]
    assert client.delete(f"/api/v1/systems/{sid}", headers=admin_headers).status_code == 204
    assert db.query(Activity).filter(Activity.type == "system_deleted").count() == 2


def test_classify(client, db, auth_headers, make_system):
    s = make_system()
    r = client.post(
        f"/api/v1/systems/{s.id}/classify",
        json={"employment_workers_management": True, "provider_outside_eu": True},
        headers=auth_headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["system_id"] == s.id
    assert body["risk_level"] == "high"
    assert body["matched_flags"] == ["employment_workers_management"]
    assert any("Art. 22" in o for o in body["obligations"]["situational"])
    assert db.query(Activity).filter(Activity.type == "system_classified").count() == 1


def test_requires_auth(client):
    assert client.get("/api/v1/systems").status_code == 401
