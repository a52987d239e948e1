from __future__ import annotations

import asyncio
from typing import Any

import pytest
from fastapi import HTTPException

import app.core.security as security
from app.core.auth import Principal
from app.core.config import Settings


def _settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "auth_url": "https://auth.example.test",
        "auth_anon_key": "anon-key",
        "otel_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


def _mock_auth_user(monkeypatch: pytest.MonkeyPatch, user: dict[str, Any]) -> None:
    async def _fake_fetch(**_: Any) -> dict[str, Any]:
        return user

    monkeypatch.setattr(security, "_fetch_auth_user", _fake_fetch)


def test_admin_role_resolves_to_mutating_principal(monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_auth_user(monkeypatch, {"id": "admin-1", "app_metadata": {"role": "admin"}})

    principal = asyncio.run(security.get_human_principal(settings=_settings(), authorization="Bearer token"))

    assert principal.subject == "admin-1"
    assert principal.role == "admin"
    assert principal.is_admin is True


def test_user_role_is_read_only(monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_auth_user(monkeypatch, {"id": "user-1", "app_metadata": {"role": "user"}})

    principal = asyncio.run(security.get_human_principal(settings=_settings(), authorization="Bearer token"))

    assert principal.is_admin is False
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(security.get_admin_principal(principal=principal))
    assert exc_info.value.status_code == 403


def test_missing_bearer_token_is_unauthorized() -> None:
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(security.get_human_principal(settings=_settings(), authorization=None))
    assert exc_info.value.status_code == 401

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(security.get_human_principal(settings=_settings(), authorization="Basic abc"))
    assert exc_info.value.status_code == 401


def test_unconfigured_auth_provider_is_unavailable() -> None:
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(
            security.get_human_principal(settings=_settings(auth_url=None), authorization="Bearer token"),
        )
    assert exc_info.value.status_code == 503


def test_user_without_id_is_unauthorized(monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_auth_user(monkeypatch, {"app_metadata": {"role": "admin"}})

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(security.get_human_principal(settings=_settings(), authorization="Bearer token"))
    assert exc_info.value.status_code == 401


def test_role_resolution_ignores_user_metadata() -> None:
    role = security._resolve_role(
        {
            "id": "user-1",
            "app_metadata": {},
            "user_metadata": {"role": "admin"},
        }
    )
    assert role == "user"


def test_role_resolution_supports_app_metadata_roles_array() -> None:
    role = security._resolve_role({"id": "admin-1", "app_metadata": {"roles": ["user", "admin"]}})
    assert role == "admin"


def test_unknown_role_falls_back_to_user() -> None:
    assert security._resolve_role({"id": "x", "app_metadata": {"role": "superuser"}}) == "user"


def test_principal_require_admin() -> None:
    Principal(subject="admin-1", scopes={"catalog:read", "catalog:write"}, role="admin").require_admin()

    with pytest.raises(PermissionError, match="catalog:write"):
        Principal(subject="user-1", scopes={"catalog:read"}, role="user").require_admin()
