"""
Engine errors.

Only configuration problems raise. Unreadable inputs, failing rule checks, and
fix patterns that change nothing are reported as diagnostics or empty results.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Unknown category, rule, SOP, or gating profile; duplicate rule IDs."""
