"""Spec validation for KafkaPartitionRemapper resources."""

from typing import Any, Mapping

from constants import MIN_OFFSET_RANGE, SECURITY_PROTOCOLS
from models import ValidationError, with_defaults


def validate(spec: Mapping[str, Any]) -> None:
    """Check a remapper spec for internal consistency.

    Checks run in a fixed order and the first failure wins. Nothing here
    touches the cluster, so an invalid spec never produces partial child
    resources.

    Args:
        spec: The CR spec, with or without defaults applied

    Raises:
        ValidationError: Describing the first violated constraint
    """
    spec = with_defaults(spec)
    kafka = spec["kafka"]
    mapping = spec["mapping"]

    if not kafka.get("bootstrapServers"):
        raise ValidationError("kafka.bootstrapServers cannot be empty")

    virtual = mapping["virtualPartitions"]
    physical = mapping["physicalPartitions"]

    if physical < 1:
        raise ValidationError("mapping.physicalPartitions must be >= 1")

    if virtual < physical:
        raise ValidationError(
            "mapping.virtualPartitions must be >= mapping.physicalPartitions"
        )

    if virtual % physical != 0:
        raise ValidationError(
            "mapping.virtualPartitions must be evenly divisible by "
            "mapping.physicalPartitions"
        )

    if mapping["offsetRange"] < MIN_OFFSET_RANGE:
        raise ValidationError(
            f"mapping.offsetRange must be >= {MIN_OFFSET_RANGE} (2^20)"
        )

    if spec["replicas"] < 0:
        raise ValidationError("replicas must be >= 0")

    protocol = kafka["securityProtocol"]
    if protocol not in SECURITY_PROTOCOLS:
        raise ValidationError(
            f"kafka.securityProtocol must be one of: {', '.join(SECURITY_PROTOCOLS)}"
        )

    if "SSL" in protocol and not kafka.get("tlsSecret"):
        raise ValidationError(
            "kafka.tlsSecret is required when using SSL or SASL_SSL protocol (TLS)"
        )

    if "SASL" in protocol and not kafka.get("saslSecret"):
        raise ValidationError(
            "kafka.saslSecret is required when using SASL_PLAINTEXT or SASL_SSL "
            "protocol (SASL)"
        )


def compression_ratio(spec: Mapping[str, Any]) -> int:
    """Virtual-to-physical partition ratio of a validated spec."""
    mapping = spec["mapping"]
    return mapping["virtualPartitions"] // mapping["physicalPartitions"]
