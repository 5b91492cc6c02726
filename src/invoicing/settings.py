"""Environment-driven defaults for invoice drafting and numbering."""

import os
from dataclasses import dataclass

_settings = None


@dataclass(frozen=True)
class InvoicingSettings:
    default_quantity: float = 1.0
    default_tax_rate: float = 20.0
    payment_term_days: int = 30
    number_prefix: str = "INV"
    number_separator: str = "-"
    number_padding: int = 4
    number_include_date: bool = True


def _env_float(name, default):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_bool(name, default):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> InvoicingSettings:
    """Return the active settings (singleton).

    Values are read once from INVOICING_* environment variables; anything
    unset falls back to the dataclass defaults.
    """
    global _settings
    if _settings is None:
        defaults = InvoicingSettings()
        _settings = InvoicingSettings(
            default_quantity=_env_float("INVOICING_DEFAULT_QUANTITY", defaults.default_quantity),
            default_tax_rate=_env_float("INVOICING_DEFAULT_TAX_RATE", defaults.default_tax_rate),
            payment_term_days=int(_env_float("INVOICING_PAYMENT_TERM_DAYS", defaults.payment_term_days)),
            number_prefix=os.environ.get("INVOICING_NUMBER_PREFIX", defaults.number_prefix),
            number_separator=os.environ.get("INVOICING_NUMBER_SEPARATOR", defaults.number_separator),
            number_padding=int(_env_float("INVOICING_NUMBER_PADDING", defaults.number_padding)),
            number_include_date=_env_bool("INVOICING_NUMBER_INCLUDE_DATE", defaults.number_include_date),
        )
    return _settings


def reset_settings():
    """Drop the cached settings so the environment is read again (useful for tests)."""
    global _settings
    _settings = None
