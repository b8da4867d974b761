"""Tests for referenced secret checks."""

import base64
from unittest.mock import MagicMock

import pytest

from models import SecretError
from resources.secrets import get_secret_key, referenced_secret_keys, verify_secret_references


def encode(value):
    return base64.b64encode(value.encode()).decode()


def make_secret(name, **data):
    return {"metadata": {"name": name}, "data": {k: encode(v) for k, v in data.items()}}


def make_spec(**kafka):
    return {
        "kafka": {"bootstrapServers": ["kafka:9093"], **kafka},
        "mapping": {"virtualPartitions": 10, "physicalPartitions": 1},
    }


class TestGetSecretKey:
    """Tests for get_secret_key function."""

    def test_decodes_value(self):
        secret = make_secret("creds", username="alice")

        assert get_secret_key(secret, "username") == "alice"

    def test_missing_key(self):
        with pytest.raises(SecretError, match="Key 'password' not found in secret creds"):
            get_secret_key(make_secret("creds", username="alice"), "password")

    def test_no_data(self):
        with pytest.raises(SecretError, match="has no data"):
            get_secret_key({"metadata": {"name": "creds"}}, "username")

    def test_invalid_utf8(self):
        secret = {"metadata": {"name": "creds"}, "data": {"username": "//4="}}

        with pytest.raises(SecretError, match="Invalid value"):
            get_secret_key(secret, "username")


class TestReferencedSecretKeys:
    """Tests for referenced_secret_keys function."""

    def test_none(self):
        assert referenced_secret_keys(make_spec()) == {}

    def test_sasl_and_tls(self):
        spec = make_spec(
            securityProtocol="SASL_SSL",
            saslSecret={"name": "creds", "mechanism": "PLAIN"},
            tlsSecret={"name": "tls", "certKey": "tls.crt", "keyKey": "tls.key"},
        )

        assert referenced_secret_keys(spec) == {
            "creds": ["username", "password"],
            "tls": ["ca.crt", "tls.crt", "tls.key"],
        }

    def test_shared_secret(self):
        spec = make_spec(
            saslSecret={"name": "kafka", "mechanism": "PLAIN"},
            tlsSecret={"name": "kafka"},
        )

        assert referenced_secret_keys(spec) == {"kafka": ["username", "password", "ca.crt"]}


class TestVerifySecretReferences:
    """Tests for verify_secret_references function."""

    def test_no_references_no_reads(self):
        client = MagicMock()
        verify_secret_references(client, "kafka", make_spec())

        client.read_secret.assert_not_called()

    def test_all_present(self):
        client = MagicMock()
        client.read_secret.return_value = make_secret("creds", username="u", password="p")
        spec = make_spec(saslSecret={"name": "creds", "mechanism": "PLAIN"})

        verify_secret_references(client, "kafka", spec)

        client.read_secret.assert_called_once_with("creds", "kafka")

    def test_missing_secret(self):
        client = MagicMock()
        client.read_secret.return_value = None
        spec = make_spec(saslSecret={"name": "creds", "mechanism": "PLAIN"})

        with pytest.raises(SecretError, match="Secret kafka/creds not found"):
            verify_secret_references(client, "kafka", spec)

    def test_missing_key(self):
        client = MagicMock()
        client.read_secret.return_value = make_secret("creds", username="u")
        spec = make_spec(saslSecret={"name": "creds", "mechanism": "PLAIN"})

        with pytest.raises(SecretError, match="password"):
            verify_secret_references(client, "kafka", spec)
