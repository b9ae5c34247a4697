from __future__ import annotations

import pytest
from pydantic import ValidationError

from pystorefront.models import ApiRequest, AuthResponse, HttpMethod, User


def test_api_request_normalizes_method() -> None:
    request = ApiRequest(path="/api/http-proxies/7", method="delete")

    assert request.method == HttpMethod.DELETE
    assert request.method.is_mutating


def test_api_request_rejects_empty_path() -> None:
    with pytest.raises(ValidationError):
        ApiRequest(path="  ")


def test_head_request_cannot_carry_body() -> None:
    with pytest.raises(ValidationError):
        ApiRequest(path="/api/users", method=HttpMethod.HEAD, body={})


def test_user_maps_camel_case_and_keeps_raw() -> None:
    payload = {"id": 3, "username": "bob", "fullName": "Bob Tran", "role": "user", "createdAt": "2024-01-01"}

    user = User.model_validate(payload)

    assert user.full_name == "Bob Tran"
    assert not user.is_admin
    assert user.raw == payload
    assert "raw" not in user.model_dump()


def test_auth_response_requires_token() -> None:
    with pytest.raises(ValidationError):
        AuthResponse.model_validate({"token": "  ", "user": {"id": 1, "username": "alice"}})
