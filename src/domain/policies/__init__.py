"""Domain policies package."""

from .posting import is_within_tolerance

__all__ = ["is_within_tolerance"]
