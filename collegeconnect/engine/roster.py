"""
collegeconnect.engine.roster — Team/project size arithmetic
============================================================
"""

from __future__ import annotations


def available_spots(required: int, active_members: int) -> int:
    """Open seats left; never negative."""
    return max(0, required - active_members)


def completion_percentage(current: int, required: int) -> int:
    """``current / required`` as a rounded percentage (0 when nothing is required)."""
    if required <= 0:
        return 0
    return round(current / required * 100)
