"""
Ambient utilities for statmerge

Provides:
- logging: console/JSON logging setup
- metrics: Prometheus merge metrics and HTTP exporter
- tracing: OpenTelemetry spans
"""

__all__ = ["logging", "metrics", "tracing"]
