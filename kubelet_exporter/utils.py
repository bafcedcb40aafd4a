import logging
import os
from urllib.parse import urlsplit

SUMMARY_PATH = "stats/summary"


def build_summary_url(kubelet_address: str) -> str:
    """
    Append the stats/summary path to the kubelet base address.
    Raises ValueError if the address is not an http(s) URL with a host.
    """
    parts = urlsplit(kubelet_address)
    if parts.scheme not in ("http", "https"):
        raise ValueError(
            f"Invalid kubelet address {kubelet_address!r}: scheme must be http or https"
        )
    if not parts.hostname:
        raise ValueError(f"Invalid kubelet address {kubelet_address!r}: missing host")

    base = kubelet_address.split("?", 1)[0].split("#", 1)[0].rstrip("/")
    return f"{base}/{SUMMARY_PATH}"


def convert_str_to_bool(value: str) -> bool:
    truthy = {"1", "true", "yes", "on"}
    falsy = {"0", "false", "no", "off", ""}
    value = value.strip().lower()
    if value in truthy:
        return True
    if value in falsy:
        return False
    raise ValueError(f"Invalid boolean value: {value}")


def createLogger(name: str) -> logging.Logger:
    """
    Create a logger with the specified name and set its level to LOGLEVEL env or INFO.
    """
    LOGLEVEL = os.environ.get('LOGLEVEL', 'INFO').upper()
    loglevel = logging.getLevelNamesMapping().get(LOGLEVEL, logging.INFO)
    handler = logging.StreamHandler()
    handler.setLevel(loglevel)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)
    logger = logging.getLogger(name)
    logger.setLevel(loglevel)
    logger.addHandler(handler)
    if LOGLEVEL not in logging.getLevelNamesMapping():
        logger.warning(f"Invalid log level: {LOGLEVEL}. Must be one of {list(logging.getLevelNamesMapping().keys())}, defaulting to INFO.")

    return logger
