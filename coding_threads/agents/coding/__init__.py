"""Coding agent module.

This module provides the conversations run by threads: the coding agent
prompt and builder, and its file, shell and delegation tools.
"""

from .agent import CodingAgentBuilder, default_builder

__all__ = ["CodingAgentBuilder", "default_builder"]
