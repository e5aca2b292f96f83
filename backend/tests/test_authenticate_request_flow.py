# ruff: noqa: SLF001

from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from taskboard.core import auth
from taskboard.core.auth_mode import AuthMode


def _request(authorization: str | None = None) -> SimpleNamespace:
    headers = {} if authorization is None else {"Authorization": authorization}
    return SimpleNamespace(headers=headers, url=SimpleNamespace(path="/api/v1/tasks"))


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, None),
        ("", None),
        ("   ", None),
        ("Basic abc", None),
        ("Bearer ", None),
        ("Bearer abc", "abc"),
        ("bearer   abc  ", "abc"),
    ],
)
def test_extract_bearer_token(header: str | None, expected: str | None) -> None:
    assert auth._extract_bearer_token(header) == expected


def test_resolve_caller_passthrough_returns_token_as_user_id(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(auth.settings, "auth_mode", AuthMode.PASSTHROUGH)

    assert auth.resolve_caller("user_123") == "user_123"
    assert auth.resolve_caller(None) is None


def test_resolve_caller_local_maps_shared_token_to_configured_user(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(auth.settings, "auth_mode", AuthMode.LOCAL)
    monkeypatch.setattr(auth.settings, "local_auth_token", "s" * 50)
    monkeypatch.setattr(auth.settings, "local_auth_user_id", "board-owner")

    assert auth.resolve_caller("s" * 50) == "board-owner"
    assert auth.resolve_caller("s" * 49) is None
    assert auth.resolve_caller("board-owner") is None


@pytest.mark.asyncio
async def test_get_auth_context_raises_401_without_token(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(auth.settings, "auth_mode", AuthMode.PASSTHROUGH)

    with pytest.raises(HTTPException) as excinfo:
        await auth.get_auth_context(  # type: ignore[arg-type]
            request=_request(),
            credentials=None,
        )

    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_auth_context_resolves_passthrough_user(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(auth.settings, "auth_mode", AuthMode.PASSTHROUGH)

    ctx = await auth.get_auth_context(  # type: ignore[arg-type]
        request=_request("Bearer user_123"),
        credentials=None,
    )

    assert ctx.actor_type == "user"
    assert ctx.user_id == "user_123"


@pytest.mark.asyncio
async def test_get_auth_context_rejects_wrong_local_token(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(auth.settings, "auth_mode", AuthMode.LOCAL)
    monkeypatch.setattr(auth.settings, "local_auth_token", "s" * 50)

    with pytest.raises(HTTPException) as excinfo:
        await auth.get_auth_context(  # type: ignore[arg-type]
            request=_request("Bearer nope"),
            credentials=None,
        )

    assert excinfo.value.status_code == 401
