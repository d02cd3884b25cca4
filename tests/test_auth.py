"""
Tests for session login and role gating.
"""
from tests.conftest import error_code, login


class TestLogin:
    """Test /auth endpoints."""

    def test_login_success(self, client):
        response = login(client, "Chair@Test.edu")
        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert data["user"]["email"] == "chair@test.edu"
        assert data["user"]["role"] == "CHAIRPERSON"

    def test_login_wrong_password(self, client):
        response = login(client, "chair@test.edu", password="nope")
        assert response.status_code == 401
        assert error_code(response) == "UNAUTHORIZED"

    def test_me_requires_session(self, client):
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert error_code(response) == "UNAUTHORIZED"

    def test_me_after_login(self, chair_client):
        response = chair_client.get("/auth/me")
        assert response.status_code == 200
        assert response.get_json()["user"]["email"] == "chair@test.edu"

    def test_logout_ends_session(self, chair_client):
        assert chair_client.post("/auth/logout").status_code == 200
        assert chair_client.get("/auth/me").status_code == 401


class TestRoleGating:
    """Chairperson-only endpoints versus read-only ones."""

    def test_anonymous_gets_401(self, client):
        response = client.get("/api/courses")
        assert response.status_code == 401
        assert error_code(response) == "UNAUTHORIZED"

    def test_student_gets_403_on_management(self, student_client):
        response = student_client.get("/api/courses")
        assert response.status_code == 403
        assert error_code(response) == "FORBIDDEN"

    def test_advisor_gets_403_on_management(self, app):
        c = app.test_client()
        login(c, "advisor@test.edu")
        assert c.post("/api/courses", json={}).status_code == 403

    def test_student_can_read_public(self, student_client):
        response = student_client.get("/api/public/curricula")
        assert response.status_code == 200
        assert response.get_json()["success"] is True

    def test_unknown_api_route(self, chair_client):
        response = chair_client.get("/api/does-not-exist")
        assert response.status_code == 404
