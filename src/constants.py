"""Constants used across the operator."""

# Custom resource coordinates
GROUP = "kafka.oso.sh"
VERSION = "v1alpha1"
API_VERSION = f"{GROUP}/{VERSION}"
KIND = "KafkaPartitionRemapper"
PLURAL = "kafkapartitionremappers"
SINGULAR = "kafkapartitionremapper"
SHORT_NAME = "kpr"

FINALIZER = "kafka.oso.sh/remapper-finalizer"

# Field manager for server-side apply
FIELD_MANAGER = "kafka-partition-remapper-operator"

# Labels stamped on every child resource
APP_NAME = "kafka-partition-remapper"
MANAGED_BY = "kafka-partition-remapper-operator"

# Proxy container contract
DEFAULT_IMAGE = "ghcr.io/osodevops/kafka-partition-remapper"
DEFAULT_TAG = "latest"
DEFAULT_PULL_POLICY = "IfNotPresent"
CONTAINER_NAME = "proxy"
CONFIG_KEY = "config.yaml"
CONFIG_DIR = "/etc/kafka-proxy"
CONFIG_PATH = f"{CONFIG_DIR}/{CONFIG_KEY}"
KAFKA_TLS_DIR = f"{CONFIG_DIR}/tls/kafka"
CONFIG_CHECKSUM_ANNOTATION = "checksum/config"

MIN_OFFSET_RANGE = 1 << 20
SECURITY_PROTOCOLS = ("PLAINTEXT", "SSL", "SASL_PLAINTEXT", "SASL_SSL")

# Requeue delays (seconds)
RECHECK_INTERVAL = 30
TRANSIENT_ERROR_DELAY = 30
CONFIGURATION_ERROR_DELAY = 300
DEFAULT_ERROR_DELAY = 60
