"""Prometheus metrics for the Tool Navigator service."""
