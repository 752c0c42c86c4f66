"""Execution modes: batch task files and streaming stdin."""

from relaycode.modes.batch import BatchSummary, load_batch_file, run_batch
from relaycode.modes.streaming import read_prompt, run_streaming

__all__ = [
    "BatchSummary",
    "load_batch_file",
    "read_prompt",
    "run_batch",
    "run_streaming",
]
