"""
Shared utilities for VETTER.

Common functionality used across contexts:
- LLM provider access and JSON response parsing
- Configuration management
- Logging (Tier 1 loguru setup, Tier 2 pipeline events)
- Timestamps
"""

from vetter.utils.timestamp import file_stamp, format_timestamp, now_exact

__all__ = ["file_stamp", "format_timestamp", "now_exact"]
