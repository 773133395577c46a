"""Structural validation of the portfolio payload."""

import logging
import math
from typing import Any, List, Optional

from ..errors import Err, Ok, Result, ValidationError
from ..models import PortfolioItem

logger = logging.getLogger(__name__)


def is_finite_number(value: Any) -> bool:
    # bool is an int subclass but is not a JSON number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range read as Infinity in JSON
        return False


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def validate_portfolio(value: Any) -> Optional[str]:
    """Return ``None`` when ``value`` is a valid portfolio, else the reason.

    Rules apply in order and the first failure wins:
    a non-empty list, each item an object, each ``symbol`` a string with
    non-whitespace content, and ``quantity`` (when given) a finite number >= 0.
    """
    if not isinstance(value, list) or not value:
        return "portfolio must be a non-empty array"

    for index, item in enumerate(value):
        if not isinstance(item, dict):
            return f"portfolio[{index}] must be an object"

        symbol = item.get("symbol")
        if not isinstance(symbol, str) or not symbol.strip():
            return f"portfolio[{index}].symbol must be a non-empty string"

        quantity = item.get("quantity")
        if quantity is not None and (not is_finite_number(quantity) or quantity < 0):
            return f"portfolio[{index}].quantity must be a non-negative number"

    return None


def parse_portfolio(value: Any, max_symbols: int = 0) -> Result:
    """Validate and convert the payload into ``PortfolioItem`` objects."""
    error = validate_portfolio(value)
    if error is not None:
        logger.info(f"Rejected portfolio: {error}")
        return Err(ValidationError(error))

    if max_symbols > 0:
        distinct = {normalize_symbol(item["symbol"]) for item in value}
        if len(distinct) > max_symbols:
            message = f"portfolio may contain at most {max_symbols} distinct symbols"
            logger.info(f"Rejected portfolio: {message} (got {len(distinct)})")
            return Err(ValidationError(message))

    items: List[PortfolioItem] = [
        PortfolioItem(symbol=item["symbol"], quantity=item.get("quantity"))
        for item in value
    ]
    return Ok(items)
