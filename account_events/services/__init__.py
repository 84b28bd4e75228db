"""Outbound integrations used by event listeners."""
