"""Tests for albumctl.core.tokens module."""

from __future__ import annotations

from conftest import make_token

from albumctl.core.tokens import decode_token, is_token_expiring_soon, time_until_expiration

NOW = 1_700_000_000


class TestDecodeToken:
    def test_decodes_payload(self):
        token = make_token({"sub": "user-1", "exp": NOW + 900})
        assert decode_token(token) == {"sub": "user-1", "exp": NOW + 900}

    def test_malformed_token(self):
        assert decode_token("not-a-token") is None
        assert decode_token("a.!!!.c") is None
        assert decode_token("") is None

    def test_non_object_payload(self):
        token = make_token({"x": 1}).split(".")
        token[1] = "WzEsMiwzXQ"  # [1,2,3]
        assert decode_token(".".join(token)) is None


class TestExpiry:
    def test_time_until_expiration(self):
        token = make_token({"exp": NOW + 120})
        assert time_until_expiration(token, now=NOW) == 120

    def test_no_exp_claim(self):
        assert time_until_expiration(make_token({"sub": "x"}), now=NOW) is None

    def test_expiring_soon(self):
        token = make_token({"exp": NOW + 30})
        assert is_token_expiring_soon(token, minutes=1, now=NOW) is True
        assert is_token_expiring_soon(token, minutes=0.25, now=NOW) is False

    def test_undecodable_counts_as_expiring(self):
        assert is_token_expiring_soon("garbage", now=NOW) is True
