"""Observability: structured logging, request correlation, metrics, health."""
