"""Configuration for the invoice tax engine.

Values are read from the environment (and a ``.env`` file when one
is present) once at import time.
"""

import logging
import os
from decimal import Decimal, InvalidOperation
from typing import Optional

from dotenv import load_dotenv

from .models import DEFAULT_TAX_RATE, TaxMode

load_dotenv()

logger = logging.getLogger(__name__)


def _env_decimal(name: str, default: Decimal) -> Decimal:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return Decimal(raw.strip())
    except InvalidOperation:
        logger.warning(f"Invalid {name}={raw!r}, using {default}")
        return default


def _env_tax_mode(name: str, default: TaxMode) -> TaxMode:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return TaxMode.parse(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using {default.value}")
        return default


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


# Configuration
DEFAULT_RATE = _env_decimal('TAX_ENGINE_DEFAULT_TAX_RATE', DEFAULT_TAX_RATE)
DEFAULT_TAX_MODE = _env_tax_mode('TAX_ENGINE_DEFAULT_TAX_MODE', TaxMode.WITHOUT_TAX)
ROUND_OFF_ENABLED = _env_flag('TAX_ENGINE_ROUND_OFF')
LOG_LEVEL = os.getenv('TAX_ENGINE_LOG_LEVEL', 'INFO').upper()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for applications embedding the engine."""
    logging.basicConfig(level=level or LOG_LEVEL)
