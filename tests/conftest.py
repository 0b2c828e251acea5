# tests/conftest.py
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict
from uuid import uuid4
import importlib
import pytest
from fastapi.testclient import TestClient


@dataclass
class SeededUser:
    id: str
    headers: Dict[str, str]


@pytest.fixture()
def fixed_now():
    # 2025-10-20 15:30:00 UTC
    return datetime(2025, 10, 20, 15, 30, 0, tzinfo=timezone.utc)


@pytest.fixture()
def app_client(monkeypatch, fixed_now):
    import api
    importlib.reload(api)

    # Temporary database
    tmp_db = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp_db.close()
    monkeypatch.setattr(api, "DB", tmp_db.name, raising=True)

    # Freeze the clock
    monkeypatch.setattr(api, "utc_now", lambda: fixed_now, raising=True)

    api.init_db()
    client = TestClient(api.app)

    yield client

    api.app.dependency_overrides = {}
    os.unlink(tmp_db.name)


@pytest.fixture()
def make_user(app_client, fixed_now):
    """Insert a user directly and mint a real JWT for it."""
    from app.db import db_manager
    from app.repositories import AuthRepository, UserRepository
    from app.services.auth_service import AuthService
    from app.services.user_service import UserService

    user_repo = UserRepository(db_manager)
    auth_service = AuthService(UserService(user_repo), AuthRepository(db_manager), lambda: fixed_now)

    def _make(email: str = "ana@example.com", plan: str = "free") -> SeededUser:
        row = user_repo.create(
            public_id=str(uuid4()),
            email=email,
            name=email.split("@")[0],
            google_id=None,
            created_at=fixed_now.isoformat(),
            plan=plan,
        )
        user = UserService._to_user_out(row)
        token = auth_service.create_access_token(user)
        return SeededUser(id=user.public_id, headers={"Authorization": f"Bearer {token}"})

    return _make


@pytest.fixture()
def free_user(make_user):
    return make_user("free@example.com", plan="free")


@pytest.fixture()
def pro_user(make_user):
    return make_user("pro@example.com", plan="pro")


@pytest.fixture()
def other_user(make_user):
    return make_user("other@example.com", plan="pro")
