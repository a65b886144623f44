"""
End-to-end tests for the HTTP surface using FastAPI's TestClient.
"""

import uuid

from auth.jwt import TokenIssuer

THIRTY_DAYS = 30 * 24 * 60 * 60


def _register(client, user):
    response = client.post("/api/register", json=user)
    assert response.status_code == 201, response.text
    return response.json()["token"]


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestRegisterAndLogin:
    def test_worked_example(self, client, tokens, valid_user):
        token = _register(client, valid_user)
        assert isinstance(token, str) and token

        again = client.post("/api/register", json=valid_user)
        assert again.status_code == 400
        assert again.json() == {"error": "conflict", "message": "User already exists"}

        wrong = client.post(
            "/api/login", json={"email": "ada@test.local", "password": "wrong"}
        )
        assert wrong.status_code == 401
        assert wrong.json()["error"] == "unauthorized"

        ok = client.post(
            "/api/login", json={"email": "ada@test.local", "password": "Str0ng!Pass"}
        )
        assert ok.status_code == 200
        login_token = ok.json()["token"]
        assert TokenIssuer.decode(login_token)["sub"] == tokens.verify(token)

    def test_token_expires_thirty_days_after_issue(self, client, valid_user):
        payload = TokenIssuer.decode(_register(client, valid_user))
        assert payload["exp"] - payload["iat"] == THIRTY_DAYS

    def test_missing_fields(self, client):
        response = client.post("/api/register", json={"email": "ada@test.local"})
        assert response.status_code == 400
        assert response.json() == {"error": "missing_field", "message": "All fields required"}

    def test_no_body(self, client):
        response = client.post("/api/login")
        assert response.status_code == 400
        assert response.json()["error"] == "missing_field"

    def test_validation_failure_is_400(self, client, valid_user):
        valid_user["password"] = "alllowercase1!"
        response = client.post("/api/register", json=valid_user)
        assert response.status_code == 400
        assert response.json()["error"] == "validation_failed"

    def test_malformed_json(self, client):
        response = client.post(
            "/api/register",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_failed"

    def test_unknown_email_login(self, client):
        response = client.post(
            "/api/login", json={"email": "ghost@test.local", "password": "Str0ng!Pass"}
        )
        assert response.status_code == 401
        assert response.json() == {"error": "not_found", "message": "No user exists"}


class TestUsers:
    def test_get_user_hides_hash(self, client, tokens, valid_user):
        user_id = tokens.verify(_register(client, valid_user))
        response = client.get(f"/api/users/{user_id}")
        assert response.status_code == 200
        body = response.json()
        assert body["user_id"] == user_id
        assert body["email"] == "ada@test.local"
        assert "password_hash" not in body
        assert "password" not in body

    def test_get_unknown_user(self, client):
        response = client.get(f"/api/users/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "message": "User not found"}

    def test_get_non_uuid_id(self, client):
        assert client.get("/api/users/not-an-id").status_code == 404

    def test_patch_own_record(self, client, tokens, valid_user):
        token = _register(client, valid_user)
        user_id = tokens.verify(token)
        response = client.patch(
            f"/api/users/{user_id}", json={"name": "Ada Lovelace"}, headers=_bearer(token)
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Ada Lovelace"

    def test_patch_requires_token(self, client, tokens, valid_user):
        user_id = tokens.verify(_register(client, valid_user))
        response = client.patch(f"/api/users/{user_id}", json={"name": "Ada Lovelace"})
        assert response.status_code == 401
        assert response.json()["error"] == "invalid_token"

    def test_patch_someone_else(self, client, valid_user):
        token = _register(client, valid_user)
        response = client.patch(
            f"/api/users/{uuid.uuid4()}", json={"name": "Mallory"}, headers=_bearer(token)
        )
        assert response.status_code == 403

    def test_patch_disallowed_field(self, client, tokens, valid_user):
        token = _register(client, valid_user)
        user_id = tokens.verify(token)
        response = client.patch(
            f"/api/users/{user_id}", json={"user_id": "x"}, headers=_bearer(token)
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Field 'user_id' cannot be updated"


class TestProfile:
    def test_profile_for_token_subject(self, client, tokens, valid_user):
        token = _register(client, valid_user)
        response = client.get("/api/profile", headers=_bearer(token))
        assert response.status_code == 200
        assert response.json()["user_id"] == tokens.verify(token)

    def test_profile_without_token(self, client):
        response = client.get("/api/profile")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_profile_with_bad_token(self, client):
        response = client.get("/api/profile", headers=_bearer("bogus.token"))
        assert response.status_code == 401

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}


class TestEmailAnchoring:
    def test_trailing_newline_email_is_not_a_second_account(self, client, store, valid_user):
        _register(client, valid_user)
        response = client.post(
            "/api/register", json=dict(valid_user, email="ada@test.local\n")
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_failed"
        assert len(store) == 1

    def test_patch_own_record_via_upper_case_id(self, client, tokens, valid_user):
        token = _register(client, valid_user)
        user_id = tokens.verify(token)
        response = client.patch(
            f"/api/users/{user_id.upper()}", json={"name": "Ada Lovelace"}, headers=_bearer(token)
        )
        assert response.status_code == 200
        assert response.json()["user_id"] == user_id
