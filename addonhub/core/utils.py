# addonhub/core/utils.py
from __future__ import annotations

__all__ = ["largeNumToString"]


_NUM_LABELS: tuple[str, ...] = ("", "K", "M")



def largeNumToString(num: int | float) -> str:
    """
    Short label for download/favorite counters.

        999       -> "999 "
        12_345    -> "12 K"
        1_234_567 -> "1.2 M"
    """
    labelIdx = 0
    value = float(num)
    while value >= 1000 and labelIdx < len(_NUM_LABELS) - 1:
        labelIdx += 1
        value /= 1000
    decimals = max(0, labelIdx - 1)
    return f"{value:.{decimals}f} {_NUM_LABELS[labelIdx]}"
