"""Realtime change notification (broadcaster, notifier, WebSocket endpoint)."""
