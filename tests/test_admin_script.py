import asyncio
import importlib.util
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from devdeakin.services.firebase_service import firebase_service

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "set_admin_claim.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("set_admin_claim", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def script(monkeypatch, fake_db):
    module = _load_script()

    monkeypatch.setattr(
        module.firebase_auth, "get_user_by_email", lambda email: SimpleNamespace(uid="u1")
    )
    get_claims = AsyncMock(return_value={"premium": True, "admin": True})
    set_claims = AsyncMock()
    monkeypatch.setattr(firebase_service, "get_custom_claims", get_claims)
    monkeypatch.setattr(firebase_service, "set_custom_claims", set_claims)
    return module, set_claims


def test_grant_keeps_existing_claims(script):
    module, set_claims = script
    asyncio.run(module.set_admin("ada@deakin.edu.au"))
    set_claims.assert_awaited_once_with("u1", {"premium": True, "admin": True})


def test_revoke_removes_only_admin(script):
    module, set_claims = script
    asyncio.run(module.set_admin("ada@deakin.edu.au", revoke=True))
    set_claims.assert_awaited_once_with("u1", {"premium": True})


def test_import_leaves_sys_path_alone():
    before = list(sys.path)
    _load_script()
    assert sys.path == before
