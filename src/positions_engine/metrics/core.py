"""Metrics exporter.

`main` starts the Prometheus HTTP exporter when `metrics.enabled` is set.
A port that cannot be bound only costs the exporter, never the evaluation.
"""

import logging
import os
from typing import Optional

from prometheus_client import start_http_server

log = logging.getLogger("positions_engine.metrics")


def start_server_safe(port: int, addr: str = "0.0.0.0") -> Optional[int]:
    """Start the exporter on `addr:port`; return the port, or None if not started."""
    if os.getenv("DISABLE_PROMETHEUS", "0") == "1":
        log.info("Prometheus disabled by DISABLE_PROMETHEUS=1")
        return None
    try:
        start_http_server(port, addr=addr)
    except OSError as e:
        log.warning(f"Failed to start Prometheus server on {addr}:{port}: {e}")
        return None
    log.info(f"Prometheus metrics server started on {addr}:{port}")
    return port
