from __future__ import annotations

import math
from decimal import Decimal
from numbers import Real
from typing import Optional

from gavel.core import ErrorKind, Rejected


def validate(amount: object, current_highest: float) -> Optional[Rejected]:
    """Local pre-check before sending a bid; ``None`` means go ahead.

    The auction source has the final word and may ask for more than this.
    """
    if isinstance(amount, bool) or not isinstance(amount, (Real, Decimal)):
        return Rejected(ErrorKind.INVALID_INPUT, "Bid amount must be a number")
    if not math.isfinite(amount) or amount <= 0:
        return Rejected(ErrorKind.INVALID_INPUT, "Bid amount must be positive")
    if amount <= current_highest:
        return Rejected(
            ErrorKind.BELOW_MINIMUM,
            f"Bid must be higher than ${current_highest:,.2f}",
        )
    return None
