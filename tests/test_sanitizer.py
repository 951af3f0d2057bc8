"""Tests for sensitive data redaction."""

import copy

import pytest

from logme.observability.constants import REDACTED_VALUE
from logme.observability.sanitizer import is_sensitive_key, redact, redact_headers


class TestIsSensitiveKey:
    """Tests for key matching."""

    @pytest.mark.parametrize(
        "key",
        [
            "password",
            "PASSWORD",
            "pass",
            "userPassword",
            "client_secret",
            "access_token",
            "Authorization",
            "api_key",
            "credentials",
            "ssn",
            "social_security_number",
            "creditCard",
            "cvv",
        ],
    )
    def test_sensitive(self, key):
        assert is_sensitive_key(key) is True

    @pytest.mark.parametrize("key", ["username", "email", "keep", "nested", "status"])
    def test_not_sensitive(self, key):
        assert is_sensitive_key(key) is False


class TestRedact:
    """Tests for redact."""

    def test_nested_example(self):
        payload = {"password": "x", "nested": {"token": "y", "keep": "z"}}

        assert redact(payload) == {
            "password": REDACTED_VALUE,
            "nested": {"token": REDACTED_VALUE, "keep": "z"},
        }

    def test_lists_are_redacted_element_wise(self):
        payload = {"users": [{"name": "a", "secret": "s1"}, {"name": "b", "secret": "s2"}]}

        assert redact(payload) == {
            "users": [
                {"name": "a", "secret": REDACTED_VALUE},
                {"name": "b", "secret": REDACTED_VALUE},
            ]
        }

    def test_top_level_list(self):
        assert redact([{"token": "t"}, "plain", 3]) == [{"token": REDACTED_VALUE}, "plain", 3]

    def test_tuple_shape_is_kept(self):
        assert redact(({"auth": "a"},)) == ({"auth": REDACTED_VALUE},)

    def test_sensitive_key_with_structured_value_is_replaced_whole(self):
        assert redact({"credentials": {"user": "u", "pw": "p"}}) == {"credentials": REDACTED_VALUE}

    @pytest.mark.parametrize("value", ["text", 42, 1.5, None, True, b"bytes"])
    def test_scalars_unchanged(self, value):
        assert redact(value) == value

    def test_input_is_not_mutated(self):
        inner = {"token": "y", "keep": "z"}
        items = [{"password": "p"}]
        payload = {"password": "x", "nested": inner, "items": items}
        snapshot = copy.deepcopy(payload)

        result = redact(payload)

        assert payload == snapshot
        assert payload["nested"] is inner
        assert payload["items"] is items
        assert result["nested"] is not inner
        assert result["items"] is not items

    def test_idempotent(self):
        payload = {
            "password": "x",
            "nested": {"token": "y", "keep": [{"card": "4111"}, "z"]},
            "list": [1, {"ok": True}],
        }
        once = redact(payload)
        assert redact(once) == once

    def test_cycle_terminates(self):
        payload: dict = {"name": "loop"}
        payload["child"] = payload

        result = redact(payload, max_depth=3)

        assert result["name"] == "loop"
        assert result["child"]["child"]["child"] == REDACTED_VALUE


class TestRedactHeaders:
    """Tests for redact_headers."""

    def test_sensitive_headers(self):
        headers = {
            "Authorization": "Bearer abc",
            "Cookie": "session=1",
            "X-Api-Key": "k",
            "Content-Type": "application/json",
            "X-Correlation-ID": "cid",
        }

        assert redact_headers(headers) == {
            "authorization": REDACTED_VALUE,
            "cookie": REDACTED_VALUE,
            "x-api-key": REDACTED_VALUE,
            "content-type": "application/json",
            "x-correlation-id": "cid",
        }

    def test_empty(self):
        assert redact_headers(None) == {}
        assert redact_headers({}) == {}
