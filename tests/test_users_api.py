import pytest
from fastapi.testclient import TestClient

from todo_users_api.main import create_app

from conftest import make_settings, todo_payload, user_payload


def create_user(client, **overrides) -> dict:
    res = client.post("/api/users", json=user_payload(**overrides))
    assert res.status_code == 201, res.text
    return res.json()["user"]


def stored_user(client, user_id: int) -> dict:
    """Read the raw row, digest included, straight from the store."""
    engine = client.app.state.pool.acquire()
    with engine.connect() as conn:
        row = conn.exec_driver_sql('SELECT * FROM "Users" WHERE user_id = ?', (user_id,)).mappings().first()
    return dict(row)


class TestUsersCRUD:
    def test_create_user_hides_password(self, client):
        res = client.post("/api/users", json=user_payload(email="  Amrit@Example.COM "))
        assert res.status_code == 201
        body = res.json()
        assert body["message"] == "User Created Successfully"
        user = body["user"]
        assert "password" not in user
        assert user["email"] == "amrit@example.com"

        row = stored_user(client, user["user_id"])
        assert row["password"] != "newPass123"
        assert client.app.state.hasher.verify("newPass123", row["password"])

    def test_create_duplicate_email(self, client):
        create_user(client)
        res = client.post("/api/users", json=user_payload(first_name="Someone"))
        assert res.status_code == 409
        assert res.json()["detail"] == "Email already registered"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"first_name": "Al"},
            {"email": "not-an-email"},
            {"phone_number": "123"},
            {"password": "short"},
            {"password": "alllowercase1"},
        ],
    )
    def test_create_validation(self, client, overrides):
        res = client.post("/api/users", json=user_payload(**overrides))
        assert res.status_code == 422
        assert res.json()["error"] == "ValidationError"

    def test_list_and_get(self, client):
        user = create_user(client)
        res = client.get("/api/users")
        assert res.status_code == 200
        assert res.json() == [user]
        assert client.get(f"/api/users/{user['user_id']}").json() == user
        assert client.get("/api/users/999").status_code == 404

    def test_put_without_password_keeps_it(self, client):
        user = create_user(client)
        digest = stored_user(client, user["user_id"])["password"]
        payload = user_payload(first_name="Changed")
        del payload["password"]
        res = client.put(f"/api/users/{user['user_id']}", json=payload)
        assert res.status_code == 200
        assert res.json()["message"] == "User Updated Successfully"
        assert res.json()["user"]["first_name"] == "Changed"
        assert stored_user(client, user["user_id"])["password"] == digest

    def test_put_with_password_rehashes(self, client):
        user = create_user(client)
        res = client.put(f"/api/users/{user['user_id']}", json=user_payload(password="Secret1"))
        assert res.status_code == 200
        row = stored_user(client, user["user_id"])
        assert row["password"] != "Secret1"
        assert client.app.state.hasher.verify("Secret1", row["password"])

    def test_patch_password_only(self, client):
        user = create_user(client)
        res = client.patch(f"/api/users/{user['user_id']}", json={"password": "Secret1"})
        assert res.status_code == 200
        assert res.json()["user"]["email"] == "amrit@example.com"
        assert client.app.state.hasher.verify("Secret1", stored_user(client, user["user_id"])["password"])

    def test_update_missing_user(self, client):
        assert client.put("/api/users/777", json=user_payload()).status_code == 404
        assert client.patch("/api/users/777", json={"first_name": "Nobody"}).status_code == 404

    def test_delete_user(self, client):
        user = create_user(client)
        res = client.delete(f"/api/users/{user['user_id']}")
        assert res.status_code == 200
        assert res.json()["message"] == "User deleted successfully"
        res_again = client.delete(f"/api/users/{user['user_id']}")
        assert res_again.status_code == 404
        assert res_again.json()["detail"] == "User not found"


class TestUsersBulk:
    def test_bulk_update_partial_success(self, client):
        a = create_user(client, email="a@example.com")
        b = create_user(client, email="b@example.com")
        payload = [
            {**user_payload(email="a@example.com", password="PassA111"), "user_id": a["user_id"]},
            {**user_payload(email="ghost@example.com"), "user_id": 4242},
            {**user_payload(email="b@example.com", first_name="Bravo"), "user_id": b["user_id"]},
        ]
        del payload[2]["password"]
        res = client.put("/api/users", json=payload)
        assert res.status_code == 200
        body = res.json()
        assert body["succeeded"] == 2
        assert body["failed"] == 1
        assert [r["ok"] for r in body["results"]] == [True, False, True]
        assert all("password" not in (r["data"] or {}) for r in body["results"])
        assert body["results"][2]["data"]["first_name"] == "Bravo"

        hasher = client.app.state.hasher
        assert hasher.verify("PassA111", stored_user(client, a["user_id"])["password"])
        assert hasher.verify("newPass123", stored_user(client, b["user_id"])["password"])

    def test_bulk_all_succeed(self, client):
        a = create_user(client, email="a@example.com")
        payload = [{**user_payload(email="a@example.com", last_name="Smith"), "user_id": a["user_id"]}]
        body = client.put("/api/users", json=payload).json()
        assert body["message"] == "Users updated successfully"
        assert body["failed"] == 0

    def test_bulk_rejects_empty_batch(self, client):
        res = client.put("/api/users", json=[])
        assert res.status_code == 400
        assert res.json()["detail"] == "Invalid or empty user data"


class TestAdminRoleAuth:
    @pytest.fixture
    def auth_client(self, tmp_path):
        app = create_app(make_settings(tmp_path, enable_role_auth=True))
        with TestClient(app) as c:
            create_user(c, email="admin@example.com", user_type="admin", password="AdminPass1")
            create_user(c, email="member@example.com", password="MemberPass1")
            c.post("/api/todos", json=todo_payload())
            yield c

    def test_list_todos_requires_credentials(self, auth_client):
        res = auth_client.get("/api/todos")
        assert res.status_code == 401
        assert res.headers["www-authenticate"] == "Basic"

    def test_wrong_password(self, auth_client):
        res = auth_client.get("/api/todos", auth=("admin@example.com", "WrongPass1"))
        assert res.status_code == 401

    def test_unknown_user(self, auth_client):
        res = auth_client.get("/api/todos", auth=("nobody@example.com", "AdminPass1"))
        assert res.status_code == 401

    def test_non_admin_is_forbidden(self, auth_client):
        res = auth_client.get("/api/todos", auth=("member@example.com", "MemberPass1"))
        assert res.status_code == 403
        assert res.json()["detail"] == "Admin role required"

    def test_admin_can_list(self, auth_client):
        res = auth_client.get("/api/todos", auth=("Admin@Example.com", "AdminPass1"))
        assert res.status_code == 200
        assert len(res.json()) == 1

    def test_other_routes_are_not_gated(self, auth_client):
        assert auth_client.get("/api/todos/1").status_code == 200

    def test_password_is_stored_verbatim(self, auth_client):
        # Surrounding spaces are part of the credential
        create_user(auth_client, email="spaced@example.com", user_type="admin", password="  Secret1  ")
        res = auth_client.get("/api/todos", auth=("spaced@example.com", "  Secret1  "))
        assert res.status_code == 200
        assert auth_client.get("/api/todos", auth=("spaced@example.com", "Secret1")).status_code == 401

    def test_auth_disabled_by_default(self, client):
        assert client.get("/api/todos").status_code == 200
