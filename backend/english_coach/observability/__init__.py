"""Tracing setup for model calls."""

from .langsmith import build_trace_config, initialize_langsmith

__all__ = ["build_trace_config", "initialize_langsmith"]
