"""Checks for secrets referenced by a remapper spec."""

import base64
import binascii
import logging
from typing import Any, Mapping

from models import SecretError, with_defaults

logger = logging.getLogger(__name__)


def get_secret_key(secret: Mapping[str, Any], key: str) -> str:
    """Decode a single key from a secret.

    Args:
        secret: Secret object as a dict (``data`` values base64 encoded)
        key: Key to read

    Returns:
        The decoded value

    Raises:
        SecretError: If the secret has no data, lacks the key, or the value
            is not valid UTF-8
    """
    name = (secret.get("metadata") or {}).get("name", "")
    data = secret.get("data")
    if not data:
        raise SecretError(f"Secret {name} has no data")
    if key not in data:
        raise SecretError(f"Key '{key}' not found in secret {name}")
    try:
        return base64.b64decode(data[key]).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise SecretError(f"Invalid value for key '{key}' in secret {name}: {e}") from e


def referenced_secret_keys(spec: Mapping[str, Any]) -> dict[str, list[str]]:
    """Secret names and keys the proxy pods will need, by secret name."""
    kafka = with_defaults(spec)["kafka"]
    refs: dict[str, list[str]] = {}

    sasl = kafka.get("saslSecret")
    if sasl:
        refs.setdefault(sasl["name"], []).extend(
            [sasl["usernameKey"], sasl["passwordKey"]]
        )

    tls = kafka.get("tlsSecret")
    if tls:
        keys = refs.setdefault(tls["name"], [])
        for field in ("caKey", "certKey", "keyKey"):
            if tls.get(field):
                keys.append(tls[field])

    return refs


def verify_secret_references(client: Any, namespace: str, spec: Mapping[str, Any]) -> None:
    """Ensure every referenced secret exists and holds the expected keys.

    Args:
        client: KubeClient used to read secrets
        namespace: Namespace of the remapper
        spec: Remapper spec

    Raises:
        SecretError: If a secret or key is missing
        KubeError: If the API call itself fails
    """
    for secret_name, keys in referenced_secret_keys(spec).items():
        secret = client.read_secret(secret_name, namespace)
        if secret is None:
            raise SecretError(f"Secret {namespace}/{secret_name} not found")
        for key in keys:
            get_secret_key(secret, key)
        logger.debug("Secret %s/%s has keys %s", namespace, secret_name, keys)
