"""Observability helpers: structlog configuration and Prometheus metrics."""
