"""Tests for the ephemeral key agreement."""

from __future__ import annotations

import base64

import pytest
from nacl.public import Box, PrivateKey, PublicKey
from nacl.utils import random as random_bytes

from safenet.auth.key_exchange import (
    NONCE_SIZE,
    KeyExchange,
    b64decode,
    open_session_key,
)
from safenet.exceptions import DecryptionError
from safenet.models import Session


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _gateway_reply(exchange: KeyExchange, plaintext: bytes) -> Session:
    """Seal *plaintext* to the exchange's key pair the way the gateway does."""
    gateway_key = PrivateKey.generate()
    sealed = Box(gateway_key, exchange.public_key).encrypt(plaintext, exchange.nonce).ciphertext
    record = {"token": "t", "encryptedKey": _b64(sealed), "publicKey": _b64(bytes(gateway_key.public_key))}
    record.update(exchange.secrets())
    return Session.model_validate(record)


class TestKeyExchange:
    def test_generate_is_fresh_each_time(self) -> None:
        a = KeyExchange.generate()
        b = KeyExchange.generate()
        assert a.nonce != b.nonce
        assert bytes(a.public_key) != bytes(b.public_key)
        assert len(a.nonce) == NONCE_SIZE

    def test_auth_fields_are_base64(self) -> None:
        exchange = KeyExchange.generate()
        fields = exchange.auth_fields()
        assert set(fields) == {"publicKey", "nonce"}
        assert base64.b64decode(fields["publicKey"]) == bytes(exchange.public_key)
        assert base64.b64decode(fields["nonce"]) == exchange.nonce

    def test_secrets_hold_private_key(self) -> None:
        exchange = KeyExchange.generate()
        secrets = exchange.secrets()
        restored = PrivateKey(base64.b64decode(secrets["privateKey"]))
        assert bytes(restored.public_key) == bytes(exchange.public_key)

    def test_rejects_short_nonce(self) -> None:
        with pytest.raises(ValueError):
            KeyExchange(PrivateKey.generate(), b"short")


class TestOpenSessionKey:
    def test_splits_key_and_nonce(self) -> None:
        exchange = KeyExchange.generate()
        key, nonce = random_bytes(32), random_bytes(24)
        session = _gateway_reply(exchange, key + nonce)
        assert open_session_key(session) == (key, nonce)

    def test_wrong_length_is_rejected(self) -> None:
        exchange = KeyExchange.generate()
        session = _gateway_reply(exchange, random_bytes(40))
        with pytest.raises(DecryptionError, match="expected 56"):
            open_session_key(session)

    def test_foreign_private_key_fails(self) -> None:
        exchange = KeyExchange.generate()
        session = _gateway_reply(exchange, random_bytes(56))
        other = KeyExchange.generate().secrets()["privateKey"]
        tampered = session.model_copy(update={"private_key": other})
        with pytest.raises(DecryptionError):
            open_session_key(tampered)

    def test_missing_field(self) -> None:
        with pytest.raises(DecryptionError, match="encryptedKey"):
            open_session_key(Session(token="t"))

    def test_invalid_base64(self) -> None:
        with pytest.raises(DecryptionError, match="not valid base64"):
            b64decode("***", "nonce")

    def test_box_matches_gateway_side(self) -> None:
        exchange = KeyExchange.generate()
        gateway_key = PrivateKey.generate()
        payload = random_bytes(56)
        sealed = Box(gateway_key, PublicKey(bytes(exchange.public_key))).encrypt(payload, exchange.nonce)
        record = {
            "token": "t",
            "encryptedKey": _b64(sealed.ciphertext),
            "publicKey": _b64(bytes(gateway_key.public_key)),
            **exchange.secrets(),
        }
        key, nonce = open_session_key(Session.model_validate(record))
        assert key + nonce == payload
