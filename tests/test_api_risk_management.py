def _system(client, headers, **kw):
    data = {"name": "Credit scorer", "risk_level": "High"}
    data.update(kw)
    return client.post("/api/v1/systems", json=data, headers=headers).json()["id"]


def test_controls_api(client, auth_headers):
    sid = _system(client, auth_headers)

    r = client.post(f"/api/v1/systems/{sid}/risk-controls/generate", headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "No risk assessment found for this system"

    client.post(f"/api/v1/systems/{sid}/risk-assessments", json={}, headers=auth_headers)
    r = client.post(f"/api/v1/systems/{sid}/risk-controls/generate", headers=auth_headers)
    assert r.status_code == 201
    generated = r.json()
    assert len(generated) == 6
    assert {c["implementation_status"] for c in generated} == {"planned"}

    r = client.post(
        f"/api/v1/systems/{sid}/risk-controls",
        json={"name": "Four-eyes approval", "description": "Two staff sign off declines", "control_type": "procedural"},
        headers=auth_headers,
    )
    assert r.status_code == 201
    control_id = r.json()["control_id"]

    r = client.patch(
        f"/api/v1/risk-controls/{control_id}",
        json={"implementation_status": "verified", "effectiveness": "very_effective"},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.json()["effectiveness"] == "very_effective"

    r = client.patch(f"/api/v1/risk-controls/{control_id}", json={"name": None}, headers=auth_headers)
    assert r.status_code == 422

    r = client.patch(
        f"/api/v1/risk-controls/{control_id}", json={"control_type": "magical"}, headers=auth_headers
    )
    assert r.status_code == 422

    assert len(client.get(f"/api/v1/systems/{sid}/risk-controls", headers=auth_headers).json()) == 7
    assert client.get("/api/v1/systems/999/risk-controls", headers=auth_headers).status_code == 404
    assert client.patch("/api/v1/risk-controls/ctrl_missing", json={}, headers=auth_headers).status_code == 404


def test_events_api(client, auth_headers):
    sid = _system(client, auth_headers, name="Chatbot", risk_level="Limited")

    r = client.post(
        f"/api/v1/systems/{sid}/risk-events",
        json={"event_type": "near_miss", "severity": "medium", "description": "Almost shared a card number"},
        headers=auth_headers,
    )
    assert r.status_code == 201
    event = r.json()
    assert event["status"] == "new"

    r = client.patch(f"/api/v1/risk-events/{event['event_id']}", json={"status": "closed"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["closure_date"] is not None

    listed = client.get(f"/api/v1/systems/{sid}/risk-events?status=closed", headers=auth_headers).json()
    assert [e["event_id"] for e in listed] == [event["event_id"]]

    r = client.post(
        f"/api/v1/systems/{sid}/risk-events",
        json={"event_type": "rumour", "severity": "medium", "description": "x"},
        headers=auth_headers,
    )
    assert r.status_code == 422
