"""Shared utilities."""

from winning_formula.utils.async_utils import run_async

__all__ = ["run_async"]
