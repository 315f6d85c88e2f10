"""
Metrics publisher for the Prometheus HTTP exporter.
"""

import logging

from prometheus_client import CollectorRegistry, REGISTRY, start_http_server

logger = logging.getLogger(__name__)


class MetricsPublisher:
    """
    Exposes a registry on ``/metrics`` over HTTP for the lifetime of the process
    """

    def __init__(self, port: int = 9108, registry: CollectorRegistry | None = None):
        """
        Initialize metrics publisher

        Args:
            port: Port to expose metrics on
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.port = port
        self.registry = registry or REGISTRY
        self._server_started = False

    def start(self) -> None:
        """Start the metrics HTTP server"""
        if self._server_started:
            logger.warning(f"Metrics server already running on port {self.port}")
            return

        try:
            start_http_server(self.port, registry=self.registry)
        except OSError as e:
            raise RuntimeError(
                f"Metrics server port {self.port} is unavailable: {e}"
            ) from e

        self._server_started = True
        logger.info(f"Metrics server started on port {self.port}")

    def is_started(self) -> bool:
        return self._server_started
