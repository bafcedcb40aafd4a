from __future__ import annotations
import logging

from kubernetes import client, config

_logger = logging.getLogger(__name__)


def load_incluster_auth_headers() -> dict[str, str]:
    """
    Load the pod service account token and return it as request headers for
    the kubelet's authenticated port.
    """
    try:
        config.load_incluster_config()
    except config.ConfigException as e:
        _logger.error(f"Failed to load k8s config: {e}")
        raise

    configuration = client.Configuration.get_default_copy()
    token = configuration.get_api_key_with_prefix("authorization")
    if not token:
        raise config.ConfigException("Service account token is empty")
    return {"Authorization": token}
