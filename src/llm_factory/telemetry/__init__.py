"""Telemetry module for logging and metrics."""

from llm_factory.telemetry.logger import RequestContext, get_logger, setup_logging
from llm_factory.telemetry.metrics import MetricsCollector, metrics_collector

__all__ = ["get_logger", "setup_logging", "RequestContext", "MetricsCollector", "metrics_collector"]
