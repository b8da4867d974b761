"""ConfigMap builder for proxy configuration."""

from typing import Any, Mapping

from constants import CONFIG_KEY
from resources.proxy_config import advertised_address, build_proxy_config
from utils import child_metadata, config_map_name


def build_config_map(spec: Mapping[str, Any], meta: Mapping[str, Any]) -> dict[str, Any]:
    """Build the desired ConfigMap holding the proxy's config.yaml.

    Args:
        spec: Remapper spec
        meta: Parent metadata (name, namespace, uid)

    Returns:
        ConfigMap manifest ready for server-side apply
    """
    name = meta["name"]
    namespace = meta.get("namespace", "")
    config_yaml = build_proxy_config(spec, advertised_address(spec, name, namespace))

    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": child_metadata(config_map_name(name), meta),
        "data": {CONFIG_KEY: config_yaml},
    }
