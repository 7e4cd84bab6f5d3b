"""Tests for snake_case conversion."""

from __future__ import annotations

import pytest

from sqlforge.template.naming import to_snake_case


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("UserName", "user_name"),
        ("userName", "user_name"),
        ("Id", "id"),
        ("ID", "id"),
        ("HTTPService", "http_service"),
        ("XMLParser", "xml_parser"),
        ("HTTPSURLPath", "httpsurl_path"),
        ("Line1Text", "line1_text"),
        ("created_at", "created_at"),
        ("Created_At", "created_at"),
        ("dbo.UserAccount", "dbo.user_account"),
        ("", ""),
    ],
)
def test_to_snake_case(name: str, expected: str) -> None:
    assert to_snake_case(name) == expected
