"""
Pytest configuration and fixtures for fishbone diagram testing.

This module provides:
- Sample bone trees and diagrams
- Temporary JSON record stores (tmp_path)
- A TestClient wired to those stores through dependency overrides
- Registered users with bearer tokens
"""

import sys
from pathlib import Path

import pytest

# Add project root for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fishbone.database.store import DiagramStore, JsonRecordStore
from fishbone.diagram.models import Bone, Diagram


# ============================================================
# BONE TREE FIXTURES
# ============================================================

def make_bone(label, *children, **fields):
    """Shorthand: make_bone("People", make_bone("Training"))"""
    return Bone(label=label, children=tuple(children), **fields)


@pytest.fixture
def sample_roots():
    """
    Three categories:

        bone-0 People      -> Training (-> Onboarding, Refresher), Staffing
        bone-1 Process     -> (none)
        bone-2 Technology  -> Outdated tools
    """
    return (
        make_bone(
            "People",
            make_bone("Training", make_bone("Onboarding"), make_bone("Refresher")),
            make_bone("Staffing", status="issue"),
        ),
        make_bone("Process"),
        make_bone("Technology", make_bone("Outdated tools", status="pending")),
    )


@pytest.fixture
def wide_roots():
    """One root with six sub-causes; the first sub-cause has five children."""
    leaves = [make_bone(f"Leaf {i}") for i in range(5)]
    subs = [make_bone("Sub 0", *leaves)] + [make_bone(f"Sub {i}") for i in range(1, 6)]
    return (make_bone("Methods", *subs),)


@pytest.fixture
def sample_diagram(sample_roots):
    return Diagram.new(
        name="Late deliveries",
        creator="Quality Team",
        creator_id="user-1",
        effect_label="Shipments arrive late",
        effect_info="Measured over Q1",
        roots=sample_roots,
    )


@pytest.fixture
def empty_diagram():
    return Diagram.new(
        name="Blank",
        creator="Quality Team",
        creator_id="user-1",
        effect_label="Something went wrong",
    )


# ============================================================
# STORE FIXTURES
# ============================================================

@pytest.fixture
def diagrams_path(tmp_path):
    return tmp_path / "db.json"


@pytest.fixture
def users_path(tmp_path):
    return tmp_path / "users.json"


@pytest.fixture
def diagram_store(diagrams_path):
    return DiagramStore(JsonRecordStore(diagrams_path, "diagrams"))


@pytest.fixture
def users_store(users_path):
    return JsonRecordStore(users_path, "users")


@pytest.fixture
def fast_bcrypt():
    """Cheap bcrypt cost for tests that create many users."""
    import bcrypt

    original = bcrypt.gensalt

    def gensalt(rounds=12, prefix=b"2b"):
        return original(rounds=4, prefix=prefix)

    from unittest.mock import patch
    with patch("bcrypt.gensalt", side_effect=gensalt):
        yield


# ============================================================
# API FIXTURES
# ============================================================

@pytest.fixture
def app(diagram_store, users_store, fast_bcrypt):
    """FastAPI app with stores pointed at tmp_path."""
    from apps.diagram_portal.api.main import app as fastapi_app
    from apps.diagram_portal.api.dependencies import get_diagram_store, get_users_store

    fastapi_app.dependency_overrides[get_diagram_store] = lambda: diagram_store
    fastapi_app.dependency_overrides[get_users_store] = lambda: users_store
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app)


def register(client, email="owner@example.com", password="secret123", name="Owner"):
    """Register through the API and return (user, headers)."""
    response = client.post("/api/auth/register", json={
        "email": email, "password": password, "name": name,
    })
    assert response.status_code == 201, response.text
    body = response.json()
    return body["user"], {"Authorization": f"Bearer {body['access_token']}"}


@pytest.fixture
def owner(client):
    """(user, headers) for the diagram owner."""
    return register(client)


@pytest.fixture
def auth_headers(owner):
    return owner[1]


@pytest.fixture
def other_headers(client):
    """Headers for a second, unrelated user."""
    return register(client, email="other@example.com", name="Other")[1]


@pytest.fixture
def stored_diagram(client, auth_headers):
    """A diagram created through the API by the owner."""
    response = client.post("/api/diagrams", headers=auth_headers, json={
        "name": "Late deliveries",
        "creator": "Quality Team",
        "effectLabel": "Shipments arrive late",
        "roots": [
            {"label": "People", "children": [
                {"label": "Training", "children": [{"label": "Onboarding"}]},
                {"label": "Staffing", "status": "issue"},
            ]},
            {"label": "Process"},
        ],
    })
    assert response.status_code == 201, response.text
    return response.json()
