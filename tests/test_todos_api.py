from smart_todo.errors import InterpreterError
from smart_todo.main import app
from smart_todo.repositories import InMemoryRepository, ReplaceOutcome, get_repository


def create_todo_payload(title="Test Task", description="Do something", completed=False, todo_id=None):
    payload = {
        "title": title,
        "description": description,
        "completed": completed,
    }
    if todo_id is not None:
        payload["id"] = todo_id
    return payload


def assert_todo_shape(todo: dict):
    for key in ["id", "title", "description", "category", "completed"]:
        assert key in todo
    assert isinstance(todo["id"], int)
    assert isinstance(todo["title"], str)
    assert isinstance(todo["completed"], bool)


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "sqlite")
        assert data["interpreter"] == "fake"

    def test_request_id_is_echoed(self, client):
        res = client.get("/", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"

        generated = client.get("/")
        assert generated.headers["X-Request-ID"]


class TestTodosCRUD:
    def test_list_empty_then_filled(self, client):
        assert client.get("/api/todo/").json() == []

        client.post("/api/todo/", json=create_todo_payload(title="First"))
        client.post("/api/todo/", json=create_todo_payload(title="Second"))
        res = client.get("/api/todo/")
        assert res.status_code == 200
        assert [t["title"] for t in res.json()] == ["First", "Second"]

    def test_create_assigns_id_category_and_location(self, client, interpreter):
        payload = create_todo_payload(title="Write report", description="Q3 numbers")
        res = client.post("/api/todo/", json=payload)
        assert res.status_code == 201
        todo = res.json()
        assert_todo_shape(todo)
        assert todo["category"] == "Work"
        assert res.headers["Location"].endswith(f"/api/todo/{todo['id']}")
        assert len(interpreter.categorized) == 1

    def test_create_ignores_client_id_and_category(self, client):
        payload = create_todo_payload(title="Buy milk", todo_id=999)
        payload["category"] = "Groceries"
        todo = client.post("/api/todo/", json=payload).json()
        assert todo["id"] != 999
        assert todo["category"] == "Personal"

    def test_create_then_get_round_trip(self, client):
        payload = create_todo_payload(title="Team meeting", description="Room 4", completed=True)
        created = client.post("/api/todo/", json=payload).json()

        res = client.get(f"/api/todo/{created['id']}")
        assert res.status_code == 200
        fetched = res.json()
        assert fetched["title"] == "Team meeting"
        assert fetched["description"] == "Room 4"
        assert fetched["completed"] is True
        assert fetched["category"] == "Work"

    def test_get_not_found(self, client):
        res = client.get("/api/todo/999999")
        assert res.status_code == 404
        assert res.json()["detail"] == "Todo not found"

    def test_put_replaces_and_recategorizes(self, client, repo):
        tid = client.post("/api/todo/", json=create_todo_payload(title="Gym")).json()["id"]
        assert repo.get(tid)["category"] == "Personal"

        new_payload = create_todo_payload(title="Prepare report", description=None, completed=True, todo_id=tid)
        res = client.put(f"/api/todo/{tid}", json=new_payload)
        assert res.status_code == 200
        assert res.json()["category"] == "Work"

        stored = repo.get(tid)
        assert stored == {
            "id": tid,
            "title": "Prepare report",
            "description": None,
            "category": "Work",
            "completed": True,
        }

    def test_put_id_mismatch_is_rejected_before_storage(self, client, repo, interpreter):
        tid = client.post("/api/todo/", json=create_todo_payload(title="Original")).json()["id"]
        before = repo.get(tid)
        interpreter.categorized.clear()

        res = client.put(f"/api/todo/{tid}", json=create_todo_payload(title="Changed", todo_id=tid + 1))
        assert res.status_code == 400
        assert repo.get(tid) == before
        assert interpreter.categorized == []

    def test_put_without_body_id_is_a_mismatch(self, client):
        tid = client.post("/api/todo/", json=create_todo_payload()).json()["id"]
        res = client.put(f"/api/todo/{tid}", json=create_todo_payload(title="No id"))
        assert res.status_code == 400

    def test_put_not_found(self, client):
        res = client.put("/api/todo/4242", json=create_todo_payload(todo_id=4242))
        assert res.status_code == 404
        assert res.json()["detail"] == "Todo not found"

    def test_put_conflict_is_fatal(self, client):
        class ConflictingRepository(InMemoryRepository):
            def replace(self, todo_id, data):
                return ReplaceOutcome.CONFLICT

        app.dependency_overrides[get_repository] = lambda: ConflictingRepository()
        res = client.put("/api/todo/1", json=create_todo_payload(todo_id=1))
        assert res.status_code == 500
        body = res.json()
        assert body["error"] == "ConcurrencyConflict"
        assert "1" in body["message"]

    def test_delete_then_get_and_delete_again(self, client):
        tid = client.post("/api/todo/", json=create_todo_payload(title="ToDelete")).json()["id"]

        res_del = client.delete(f"/api/todo/{tid}")
        assert res_del.status_code == 204
        assert res_del.text == ""

        assert client.get(f"/api/todo/{tid}").status_code == 404

        res_del_again = client.delete(f"/api/todo/{tid}")
        assert res_del_again.status_code == 404
        assert res_del_again.json()["detail"] == "Todo not found"


class TestErrors:
    def test_create_validation_error_title_empty(self, client):
        res = client.post("/api/todo/", json={"title": "  ", "description": "x"})
        assert res.status_code == 422
        body = res.json()
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert isinstance(body.get("detail"), list)

    def test_create_validation_error_missing_title(self, client):
        res = client.post("/api/todo/", json={"description": "x"})
        assert res.status_code == 422

    def test_categorizer_failure_maps_to_bad_gateway(self, client, interpreter, repo):
        def broken(todo):
            raise InterpreterError("AI service is unreachable")

        interpreter.categorize = broken
        res = client.post("/api/todo/", json=create_todo_payload())
        assert res.status_code == 502
        assert res.json() == {"error": "InterpreterUnavailable", "message": "AI service is unreachable"}
        assert repo.list_all() == []
