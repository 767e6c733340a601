"""
Network reachability check for polytrans.

Translation runs decide once, before scheduling begins, whether the
external engine can be reached at all. When it cannot, every unit is
passed through untranslated instead of burning retries on each call.

Usage:
    from polytrans.core.connections import is_network_reachable

    online = is_network_reachable()

License: MIT
"""

import socket

from polytrans.config.settings import (
    CONNECTIVITY_PROBE_HOST,
    CONNECTIVITY_PROBE_PORT,
    CONNECTIVITY_PROBE_TIMEOUT,
)
from polytrans.config.logging_config import get_logger

logger = get_logger(__name__)


def is_network_reachable(
    host: str = CONNECTIVITY_PROBE_HOST,
    port: int = CONNECTIVITY_PROBE_PORT,
    timeout: float = CONNECTIVITY_PROBE_TIMEOUT
) -> bool:
    """
    Check whether a TCP connection to the probe host can be opened.

    Args:
        host: Host to connect to (a public DNS resolver by default).
        port: TCP port on the probe host.
        timeout: Seconds to wait before giving up.

    Returns:
        bool: True if the connection succeeded, False otherwise.
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError as e:
        logger.warning(f"Network unreachable ({host}:{port}): {e}")
        return False
