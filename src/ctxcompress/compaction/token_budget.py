"""Token budget — working ceiling derived from a model's context window."""

from __future__ import annotations

import math


def compute_budget(context_window: int, ratio: float) -> int:
    """``floor(context_window * ratio)``, leaving headroom for prompt and output.

    Never negative, so downstream layers can compare against it directly.
    """
    return max(0, math.floor(context_window * ratio))
