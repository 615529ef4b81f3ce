"""Exceptions raised by the forecasting engine."""

from __future__ import annotations


class InvalidParameterError(ValueError):
    """A dosing or simulation parameter is outside its valid domain.

    Raised for non-positive divisors (carb ratio, correction factor, total
    daily dose), negative carb/insulin amounts and unknown enum strings.
    Subclasses ValueError so callers can catch either.
    """
