import pytest
from fastapi import HTTPException

from app.api.security import issue_owner_token, require_owner, verify_owner_token
from app.core.config import settings


@pytest.fixture
def signing_key(monkeypatch):
    monkeypatch.setattr(settings, "API_AUTH_ENABLED", True)
    monkeypatch.setattr(settings, "SECRET_KEY", "test-signing-key")


@pytest.mark.asyncio
async def test_auth_disabled_trusts_owner_header(monkeypatch):
    monkeypatch.setattr(settings, "API_AUTH_ENABLED", False)
    assert await require_owner(None, " user-a ") == "user-a"


@pytest.mark.asyncio
async def test_auth_disabled_still_requires_owner_header(monkeypatch):
    monkeypatch.setattr(settings, "API_AUTH_ENABLED", False)

    with pytest.raises(HTTPException) as exc:
        await require_owner(None, None)
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_auth_enabled_with_default_secret_is_unavailable(monkeypatch):
    monkeypatch.setattr(settings, "API_AUTH_ENABLED", True)
    monkeypatch.setattr(settings, "SECRET_KEY", "your-secret-key-change-this")

    with pytest.raises(HTTPException) as exc:
        await require_owner("Bearer anything", None)
    assert exc.value.status_code == 503


@pytest.mark.asyncio
async def test_require_owner_rejects_missing_or_invalid_token(signing_key):
    with pytest.raises(HTTPException) as missing_exc:
        await require_owner(None, None)
    assert missing_exc.value.status_code == 401

    with pytest.raises(HTTPException) as invalid_exc:
        await require_owner("Bearer user-a.forged", None)
    assert invalid_exc.value.status_code == 401

    with pytest.raises(HTTPException) as scheme_exc:
        await require_owner(f"Basic {issue_owner_token('user-a')}", None)
    assert scheme_exc.value.status_code == 401


@pytest.mark.asyncio
async def test_require_owner_accepts_valid_token_and_ignores_header(signing_key):
    token = issue_owner_token("user-a")
    assert await require_owner(f"Bearer {token}", "user-b") == "user-a"


def test_token_does_not_verify_under_another_key(monkeypatch, signing_key):
    token = issue_owner_token("user-a")
    assert verify_owner_token(token) == "user-a"

    monkeypatch.setattr(settings, "SECRET_KEY", "rotated-key")
    assert verify_owner_token(token) is None


@pytest.mark.parametrize("owner_id", ["", "   ", "user.a"])
def test_issue_token_rejects_unusable_owner_ids(signing_key, owner_id):
    with pytest.raises(ValueError):
        issue_owner_token(owner_id)
