"""Tests for HmacSigner."""

import hashlib
import hmac
import json

import pytest

from webhook_relay.services.signer import HmacSigner


@pytest.fixture
def signer() -> HmacSigner:
    return HmacSigner()


class TestSerialize:
    """Tests for canonical serialization."""

    def test_sorts_keys_at_every_depth(self) -> None:
        payload = {"b": 1, "a": {"d": 2, "c": [3, {"f": 4, "e": 5}]}}
        assert HmacSigner.serialize(payload) == b'{"a":{"c":[3,{"e":5,"f":4}],"d":2},"b":1}'

    def test_compact_separators(self) -> None:
        assert HmacSigner.serialize({"id": 1}) == b'{"id":1}'

    def test_keeps_unicode_as_utf8(self) -> None:
        assert HmacSigner.serialize({"name": "José"}) == '{"name":"José"}'.encode("utf-8")

    def test_string_payload_used_verbatim(self) -> None:
        assert HmacSigner.serialize("raw text") == b"raw text"

    def test_round_trips_as_json(self) -> None:
        payload = {"salary": 120000.5, "tags": ["a", "b"], "remote": True, "manager": None}
        assert json.loads(HmacSigner.serialize(payload)) == payload


class TestSign:
    """Tests for signature generation."""

    def test_matches_hmac_sha256_of_canonical_bytes(self, signer: HmacSigner) -> None:
        expected = hmac.new(b"secret", b'{"id":1}', hashlib.sha256).hexdigest()
        assert signer.sign({"id": 1}, "secret") == expected

    def test_is_lowercase_hex(self, signer: HmacSigner) -> None:
        signature = signer.sign({"id": 1}, "secret")
        assert len(signature) == 64
        assert signature == signature.lower()
        int(signature, 16)

    def test_independent_of_key_order(self, signer: HmacSigner) -> None:
        first = signer.sign({"a": 1, "b": {"x": 1, "y": 2}}, "secret")
        second = signer.sign({"b": {"y": 2, "x": 1}, "a": 1}, "secret")
        assert first == second

    def test_differs_by_secret(self, signer: HmacSigner) -> None:
        assert signer.sign({"id": 1}, "one") != signer.sign({"id": 1}, "two")

    def test_differs_by_payload(self, signer: HmacSigner) -> None:
        assert signer.sign({"id": 1}, "secret") != signer.sign({"id": 2}, "secret")


class TestVerify:
    """Tests for signature verification."""

    def test_accepts_own_signature(self, signer: HmacSigner) -> None:
        payload = {"job_id": "J-1", "title": "Engineer"}
        signature = signer.sign(payload, "secret")
        assert signer.verify(payload, signature, "secret") is True

    def test_rejects_uppercase_hex(self, signer: HmacSigner) -> None:
        signature = signer.sign({"id": 1}, "secret").upper()
        assert signer.verify({"id": 1}, signature, "secret") is False

    def test_rejects_single_letter_case_flip(self, signer: HmacSigner) -> None:
        signature = signer.sign({"id": 1}, "secret")
        index = next(i for i, char in enumerate(signature) if char in "abcdef")
        flipped = signature[:index] + signature[index].upper() + signature[index + 1 :]
        assert signer.verify({"id": 1}, flipped, "secret") is False

    def test_rejects_surrounding_whitespace(self, signer: HmacSigner) -> None:
        signature = signer.sign({"id": 1}, "secret")
        assert signer.verify({"id": 1}, f" {signature}\n", "secret") is False

    def test_rejects_mutated_signature(self, signer: HmacSigner) -> None:
        signature = signer.sign({"id": 1}, "secret")
        mutated = ("0" if signature[0] != "0" else "1") + signature[1:]
        assert signer.verify({"id": 1}, mutated, "secret") is False

    def test_rejects_wrong_secret(self, signer: HmacSigner) -> None:
        signature = signer.sign({"id": 1}, "secret")
        assert signer.verify({"id": 1}, signature, "other") is False

    def test_rejects_mutated_payload(self, signer: HmacSigner) -> None:
        signature = signer.sign({"id": 1}, "secret")
        assert signer.verify({"id": 2}, signature, "secret") is False

    @pytest.mark.parametrize("signature", ["not-hex", "abc", "zz" * 32])
    def test_rejects_malformed_hex(self, signer: HmacSigner, signature: str) -> None:
        assert signer.verify({"id": 1}, signature, "secret") is False

    def test_rejects_truncated_signature(self, signer: HmacSigner) -> None:
        signature = signer.sign({"id": 1}, "secret")
        assert signer.verify({"id": 1}, signature[:32], "secret") is False

    @pytest.mark.parametrize("signature,secret", [(None, "secret"), ("", "secret"), ("ab", None)])
    def test_rejects_missing_values(self, signer: HmacSigner, signature, secret) -> None:
        assert signer.verify({"id": 1}, signature, secret) is False


def test_generate_secret_is_64_hex_chars() -> None:
    secret = HmacSigner.generate_secret()
    assert len(secret) == 64
    int(secret, 16)
    assert HmacSigner.generate_secret() != secret
