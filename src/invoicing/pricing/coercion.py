"""Numeric coercion boundary for loosely-typed editor input.

Quantities, unit prices, tax rates and discount values arrive from the editor
either as numbers or as the raw text of an input field. Every one of them goes
through :func:`to_number`, which never raises: empty, non-numeric or
non-finite input becomes ``0.0``. Amounts computed from coerced numbers can
still overflow; :func:`finite_or_zero` folds those back to ``0.0`` as well.
"""

import math

import structlog

logger = structlog.get_logger(__name__)


def to_number(raw) -> float:
    """Parse ``raw`` as a float, falling back to ``0.0``.

    Accepts ints, floats and strings. Strings are stripped and may use a
    decimal comma (``"12,5"``). ``None``, booleans, empty strings, unparseable
    text, NaN and infinities all yield ``0.0``.
    """
    if raw is None or isinstance(raw, bool):
        return 0.0

    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        text = raw.strip().replace(",", ".")
        if not text:
            return 0.0
        try:
            value = float(text)
        except ValueError:
            logger.debug("Non-numeric input coerced to zero", raw=raw)
            return 0.0
    else:
        logger.debug("Unsupported input type coerced to zero", raw_type=type(raw).__name__)
        return 0.0

    if not math.isfinite(value):
        return 0.0
    return value


def finite_or_zero(value: float) -> float:
    """Collapse an overflowed (infinite or NaN) intermediate amount to ``0.0``."""
    return value if math.isfinite(value) else 0.0
