"""Shared argparse type validators for CLI parameter bounds checking.

These validators produce clear error messages when users pass invalid
values (e.g., ``--keep-top-n 0``, ``--three-sigma 1.5``).  They are
intended to be used as the ``type=`` argument in ``add_argument()``.
"""

from __future__ import annotations

import argparse


def _positive_int(value: str) -> int:
    """argparse type for positive integers (> 0)."""
    ivalue = int(value)
    if ivalue <= 0:
        raise argparse.ArgumentTypeError(f"{value} is not a positive integer")
    return ivalue


def _non_negative_int(value: str) -> int:
    """argparse type for integers >= 0."""
    ivalue = int(value)
    if ivalue < 0:
        raise argparse.ArgumentTypeError(f"{value} is not a non-negative integer")
    return ivalue


def _correlation(value: str) -> float:
    """argparse type for correlation values in the closed interval [-1, 1]."""
    fvalue = float(value)
    if not (-1 <= fvalue <= 1):
        raise argparse.ArgumentTypeError(
            f"{value} is not a valid correlation (must be in [-1, 1])"
        )
    return fvalue
