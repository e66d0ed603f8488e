def _create(client, **overrides):
    payload = {"title": "Forces and motion", "subject": "Science", "durationMinutes": 30}
    payload.update(overrides)
    response = client.post("/api/tests", json=payload)
    assert response.status_code == 201
    return response.json()


def test_create_and_get_test(client) -> None:
    created = _create(client, createdBy="teacher-1")
    assert created["testCode"].startswith("S")
    assert len(created["testCode"]) == 6
    assert created["subject"] == "science"
    assert created["durationMinutes"] == 30
    assert created["questionCount"] == 0

    response = client.get(f"/api/tests/{created['testCode'].lower()}")
    assert response.status_code == 200
    assert response.json()["id"] == created["id"]


def test_create_test_validation(client) -> None:
    assert client.post("/api/tests", json={"title": "", "subject": "english"}).status_code == 422
    assert client.post("/api/tests", json={"title": "  ", "subject": "english"}).status_code == 400


def test_list_tests_filters_by_creator(client) -> None:
    _create(client, createdBy="teacher-1")
    _create(client, createdBy="teacher-2", subject="english")

    assert len(client.get("/api/tests").json()) == 2
    mine = client.get("/api/tests", params={"createdBy": "teacher-2"}).json()
    assert [test["createdBy"] for test in mine] == ["teacher-2"]


def test_update_test(client) -> None:
    created = _create(client)
    response = client.patch(
        f"/api/tests/{created['testCode']}",
        json={"title": "Forces", "isActive": False},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Forces"
    assert body["isActive"] is False
    assert body["durationMinutes"] == 30


def test_delete_test(client) -> None:
    created = _create(client)
    assert client.delete(f"/api/tests/{created['testCode']}").json() == {"status": "deleted"}
    assert client.get(f"/api/tests/{created['testCode']}").status_code == 404


def test_malformed_code(client) -> None:
    assert client.get("/api/tests/abc").status_code == 400
