"""Validation utilities for values crossing the microgrid boundary."""

from numbers import Integral, Real
from typing import Any, Optional, Union, Type, Tuple

import numpy as np

from .exceptions import ValidationTypeError, ValidationRangeError

# Accepted campus target load, kW
MIN_TARGET_LOAD_KW = 0.0
MAX_TARGET_LOAD_KW = 2000.0

FORECAST_HORIZONS = (6, 24)


class Validator:
    """Base validator class."""

    @staticmethod
    def validate_type(value: Any, expected_type: Union[Type, Tuple[Type, ...]]) -> None:
        """Validate value type."""
        # bool is an int subclass but never a valid quantity
        if isinstance(value, bool) or not isinstance(value, expected_type):
            name = getattr(expected_type, "__name__", None) or "/".join(
                t.__name__ for t in expected_type
            )
            raise ValidationTypeError(
                f"Expected type {name}, got {type(value).__name__}"
            )

    @staticmethod
    def validate_range(
        value: Union[int, float],
        min_value: Optional[Union[int, float]] = None,
        max_value: Optional[Union[int, float]] = None,
        min_inclusive: bool = True
    ) -> None:
        """Validate numeric range."""
        if not np.isfinite(value):
            raise ValidationRangeError(f"Value {value} is not a finite number")

        if min_value is not None:
            if value < min_value or (not min_inclusive and value == min_value):
                raise ValidationRangeError(f"Value {value} is below minimum {min_value}")

        if max_value is not None and value > max_value:
            raise ValidationRangeError(f"Value {value} exceeds maximum {max_value}")


def validate_target_load(target_load_kw: float) -> float:
    """Validate an operator-set campus target load, returning it as float.

    The accepted range is (0, 2000] kW. The engine never sees values
    outside it.
    """
    Validator.validate_type(target_load_kw, Real)
    Validator.validate_range(
        target_load_kw,
        min_value=MIN_TARGET_LOAD_KW,
        max_value=MAX_TARGET_LOAD_KW,
        min_inclusive=False
    )
    return float(target_load_kw)


def validate_soc(soc_percent: float) -> float:
    """Validate a state of charge percentage."""
    Validator.validate_type(soc_percent, Real)
    Validator.validate_range(soc_percent, min_value=0, max_value=100)
    return float(soc_percent)


def validate_horizon(horizon: int) -> int:
    """Validate a forecast horizon in hours."""
    Validator.validate_type(horizon, Integral)
    if horizon not in FORECAST_HORIZONS:
        raise ValidationRangeError(
            f"Forecast horizon must be one of {FORECAST_HORIZONS}, got {horizon}"
        )
    return int(horizon)
