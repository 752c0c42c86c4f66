"""relaycode - tool-calling conversation orchestrator for AI coding assistants."""

__version__ = "0.1.0"
