"""
Tests for the Diagram Portal API: auth and diagram CRUD
=========================================================

Runs the FastAPI app with TestClient against per-test JSON stores.
"""

from tests.conftest import register


# ============================================================
# System
# ============================================================

class TestSystemEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["name"] == "Fishbone Diagram API"

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Process-Time" in response.headers


# ============================================================
# Auth
# ============================================================

class TestAuthEndpoints:

    def test_register_returns_token(self, client):
        response = client.post("/api/auth/register", json={
            "email": "Jane@Example.com", "password": "secret123", "name": "Jane",
        })
        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "jane@example.com"
        assert "password" not in body["user"]

    def test_duplicate_register(self, client, owner):
        response = client.post("/api/auth/register", json={
            "email": "OWNER@example.com", "password": "secret123", "name": "Again",
        })
        assert response.status_code == 409
        assert response.json()["detail"] == "User with this email already exists"

    def test_short_password(self, client):
        response = client.post("/api/auth/register", json={
            "email": "jane@example.com", "password": "123", "name": "Jane",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Validation failed"

    def test_bad_email(self, client):
        response = client.post("/api/auth/register", json={
            "email": "not-an-email", "password": "secret123", "name": "Jane",
        })
        assert response.status_code == 400

    def test_login(self, client, owner):
        response = client.post("/api/auth/login", json={
            "email": "owner@example.com", "password": "secret123",
        })
        assert response.status_code == 200
        assert response.json()["user"]["id"] == owner[0]["id"]

    def test_login_failures_share_message(self, client, owner):
        wrong = client.post("/api/auth/login", json={
            "email": "owner@example.com", "password": "wrong-pass",
        })
        unknown = client.post("/api/auth/login", json={
            "email": "ghost@example.com", "password": "secret123",
        })
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json() == {"detail": "Invalid email or password"}

    def test_profile_and_verify(self, client, owner):
        user, headers = owner
        profile = client.get("/api/auth/profile", headers=headers)
        assert profile.status_code == 200
        assert profile.json()["email"] == "owner@example.com"

        verify = client.get("/api/auth/verify", headers=headers).json()
        assert verify["valid"] is True
        assert verify["user"]["id"] == user["id"]

    def test_missing_token(self, client):
        # HTTPBearer answers 403 on older FastAPI releases and 401 on newer ones
        assert client.get("/api/auth/profile").status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.get("/api/auth/profile", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_token_for_deleted_user(self, client, owner, users_store):
        user, headers = owner
        users_store.delete(user["id"])
        response = client.get("/api/auth/profile", headers=headers)
        assert response.status_code == 401


# ============================================================
# Diagrams
# ============================================================

class TestCreateDiagram:

    def test_create(self, client, owner, stored_diagram):
        user, _ = owner
        assert stored_diagram["id"]
        assert stored_diagram["creatorId"] == user["id"]
        assert stored_diagram["roots"][0]["children"][1]["status"] == "issue"
        assert stored_diagram["createdAt"] == stored_diagram["updatedAt"]

    def test_create_requires_auth(self, client):
        response = client.post("/api/diagrams", json={
            "name": "x", "creator": "y", "effectLabel": "z",
        })
        assert response.status_code in (401, 403)

    def test_create_rejects_blank_bone_label(self, client, auth_headers):
        response = client.post("/api/diagrams", headers=auth_headers, json={
            "name": "x", "creator": "y", "effectLabel": "z",
            "roots": [{"label": ""}],
        })
        assert response.status_code == 400

    def test_create_rejects_whitespace_name(self, client, auth_headers):
        response = client.post("/api/diagrams", headers=auth_headers, json={
            "name": "   ", "creator": "y", "effectLabel": "z",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Diagram name cannot be empty"

    def test_create_rejects_long_creator(self, client, auth_headers):
        response = client.post("/api/diagrams", headers=auth_headers, json={
            "name": "x", "creator": "c" * 51, "effectLabel": "z",
        })
        assert response.status_code == 400


class TestReadDiagrams:

    def _create(self, client, headers, name, creator="Quality Team"):
        response = client.post("/api/diagrams", headers=headers, json={
            "name": name, "creator": creator, "effectLabel": "Effect",
            "roots": [{"label": "People"}],
        })
        assert response.status_code == 201
        return response.json()

    def test_get_own_diagram(self, client, auth_headers, stored_diagram):
        response = client.get(f"/api/diagrams/{stored_diagram['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == stored_diagram

    def test_other_user_forbidden(self, client, other_headers, stored_diagram):
        response = client.get(f"/api/diagrams/{stored_diagram['id']}", headers=other_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "You do not have permission to access this diagram"

    def test_missing_diagram(self, client, auth_headers):
        response = client.get("/api/diagrams/does-not-exist", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Diagram with ID does-not-exist not found"

    def test_list_only_own(self, client, auth_headers, other_headers, stored_diagram):
        self._create(client, other_headers, "Someone else's")
        mine = client.get("/api/diagrams", headers=auth_headers).json()
        assert [d["id"] for d in mine] == [stored_diagram["id"]]

    def test_public_lists_everything(self, client, auth_headers, other_headers, stored_diagram):
        self._create(client, other_headers, "Someone else's")
        response = client.get("/api/diagrams/public")
        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_pagination(self, client, auth_headers):
        for i in range(5):
            self._create(client, auth_headers, f"Diagram {i}")

        page = client.get("/api/diagrams?page=2&limit=2", headers=auth_headers).json()
        assert page["total"] == 5
        assert page["page"] == 2
        assert page["limit"] == 2
        assert page["totalPages"] == 3
        assert [d["name"] for d in page["data"]] == ["Diagram 2", "Diagram 3"]

    def test_search(self, client, auth_headers):
        self._create(client, auth_headers, "Late deliveries")
        self._create(client, auth_headers, "Returns", creator="Logistics")
        self._create(client, auth_headers, "Defects")

        page = client.get("/api/diagrams?search=LOGISTICS", headers=auth_headers).json()
        assert page["total"] == 1
        assert page["data"][0]["name"] == "Returns"
        assert page["page"] == 1
        assert page["limit"] == 10

    def test_stats(self, client, auth_headers, other_headers, stored_diagram):
        self._create(client, other_headers, "Other", creator="Ops")
        stats = client.get("/api/diagrams/stats", headers=auth_headers).json()
        # 5 bones in the stored diagram, 1 in the other
        assert stats == {
            "totalDiagrams": 2,
            "totalBones": 6,
            "creatorStats": {"Quality Team": 1, "Ops": 1},
            "averageBonesPerDiagram": 3,
        }

    def test_stats_empty(self, client, auth_headers):
        stats = client.get("/api/diagrams/stats", headers=auth_headers).json()
        assert stats["totalDiagrams"] == 0
        assert stats["averageBonesPerDiagram"] == 0


class TestUpdateDeleteDiagram:

    def test_partial_update(self, client, auth_headers, stored_diagram):
        response = client.put(f"/api/diagrams/{stored_diagram['id']}", headers=auth_headers,
                              json={"name": "Renamed"})
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Renamed"
        assert body["roots"] == stored_diagram["roots"]
        assert body["effectLabel"] == stored_diagram["effectLabel"]

    def test_update_ignores_server_fields(self, client, auth_headers, stored_diagram):
        response = client.put(f"/api/diagrams/{stored_diagram['id']}", headers=auth_headers, json={
            "id": "hijack", "creatorId": "someone-else", "createdAt": "2000-01-01T00:00:00Z",
            "effectLabel": "New effect",
        })
        body = response.json()
        assert body["id"] == stored_diagram["id"]
        assert body["creatorId"] == stored_diagram["creatorId"]
        assert body["createdAt"] == stored_diagram["createdAt"]
        assert body["effectLabel"] == "New effect"

    def test_update_replaces_roots(self, client, auth_headers, stored_diagram):
        response = client.put(f"/api/diagrams/{stored_diagram['id']}", headers=auth_headers,
                              json={"roots": [{"label": "Machines"}]})
        assert [r["label"] for r in response.json()["roots"]] == ["Machines"]

    def test_update_invalid_is_not_stored(self, client, auth_headers, stored_diagram):
        response = client.put(f"/api/diagrams/{stored_diagram['id']}", headers=auth_headers,
                              json={"effectLabel": "  "})
        assert response.status_code == 400
        again = client.get(f"/api/diagrams/{stored_diagram['id']}", headers=auth_headers)
        assert again.json()["effectLabel"] == stored_diagram["effectLabel"]

    def test_update_by_other_user(self, client, other_headers, stored_diagram):
        response = client.put(f"/api/diagrams/{stored_diagram['id']}", headers=other_headers,
                              json={"name": "Mine now"})
        assert response.status_code == 403

    def test_delete(self, client, auth_headers, stored_diagram):
        url = f"/api/diagrams/{stored_diagram['id']}"
        assert client.delete(url, headers=auth_headers).status_code == 204
        assert client.get(url, headers=auth_headers).status_code == 404
        assert client.delete(url, headers=auth_headers).status_code == 404

    def test_second_account_sees_nothing(self, client, stored_diagram):
        _, headers = register(client, email="third@example.com", name="Third")
        assert client.get("/api/diagrams", headers=headers).json() == []
