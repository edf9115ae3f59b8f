"""Diagnostics and debugging utilities for qnopt."""

from .checks import (
    assert_descent_direction,
    assert_feasible,
    assert_finite,
    assert_pos_def,
    is_pos_def,
)
from .debug_mode import (
    debug_context,
    is_debug_enabled,
    set_debug_enabled,
)

__all__ = [
    "is_pos_def",
    "assert_finite",
    "assert_descent_direction",
    "assert_feasible",
    "assert_pos_def",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
]
