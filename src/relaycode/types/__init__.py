"""Shared types for relaycode."""
