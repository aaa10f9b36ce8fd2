from aiready.services.training import questions_for


def test_list_modules(client, auth_headers):
    r = client.get("/api/v1/training/modules", headers=auth_headers)
    assert r.status_code == 200
    modules = r.json()
    assert len(modules) == 6
    assert modules[0]["title"] == "EU AI Act Introduction"
    assert modules[0]["role_relevance"]["user"] == "Medium"


def test_module_content(client, auth_headers):
    r = client.get("/api/v1/training/modules/3/content?role=developer", headers=auth_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["module_id"] == "3"
    assert body["role"] == "developer"
    assert body["source"] == "static"
    assert len(body["assessments"]) == 2

    assert client.get("/api/v1/training/modules/42/content", headers=auth_headers).status_code == 404


def test_progress_round_trip(client, auth_headers, other_headers):
    r = client.post("/api/v1/training/progress", json={"module_id": "2", "completion": 55.4}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["completion"] == 55

    mine = client.get("/api/v1/training/progress", headers=auth_headers).json()
    assert mine["2"]["completion"] == 55
    assert client.get("/api/v1/training/progress", headers=other_headers).json() == {}


def test_submit_assessment(client, auth_headers):
    answers = {q["question"]: q["correct_answer"] for q in questions_for("1")}
    r = client.post("/api/v1/training/modules/1/assessment", json={"answers": answers}, headers=auth_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["passed"] is True
    assert body["completion"] == 100

    progress = client.get("/api/v1/training/progress", headers=auth_headers).json()
    assert progress["1"]["assessment_score"] == 100
