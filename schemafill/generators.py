"""
Random value generators, one per primitive kind.

Every generator is a plain function of its constraints and a ``random.Random``
instance, so a seeded instance reproduces the same values.
"""

import random
import string
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, Optional, Union

from . import type_mapping

# Character pools selected by the randomness factor, narrowest first.
# Look-alike characters (l, O, 0, 1) are left out on purpose.
CHARACTER_POOLS: Dict[int, str] = {
    1: 'abcdefghijkmnopqrstuvwxyz ',
    2: 'abcdefghijkmnopqrstuvwxyzABCDEFGHIJKLMNPQRSTUVWXYZ ',
    3: 'abcdefghijkmnopqrstuvwxyzABCDEFGHIJKLMNPQRSTUVWXYZ23456789 ',
    4: 'abcdefghijkmnopqrstuvwxyzABCDEFGHIJKLMNPQRSTUVWXYZ23456789.,-_!$@#%^&* ',
}
DEFAULT_RANDOMNESS_FACTOR = 1

FIXED_TEXT_PATTERN = string.ascii_uppercase + string.ascii_lowercase + string.digits

MAX_FLOAT_VALUE = 10000.0


def character_pool(randomness_factor: int) -> str:
    """Return the character pool for a randomness factor; unknown factors get pool 1."""
    return CHARACTER_POOLS.get(randomness_factor, CHARACTER_POOLS[DEFAULT_RANDOMNESS_FACTOR])


def random_int(data_type: str, rng: random.Random) -> int:
    """Draw an integer uniformly from ``[0, max]`` where max is the positive bound of the kind."""
    return rng.randint(0, type_mapping.integer_max(data_type))


def random_decimal(precision: int, scale: int, rng: random.Random) -> Decimal:
    """
    Draw a decimal uniformly from ``[0, max]`` with ``scale`` fractional digits.

    ``max`` is the largest value the column can hold, e.g. 999.99 for (5, 2).
    The draw is made over the integer number of ``10**-scale`` units, which keeps
    the result exact and never above ``max``.

    Args:
        precision: Total number of digits
        scale: Number of digits after the decimal point

    Returns:
        Decimal with exactly ``scale`` fractional digits
    """
    precision = max(precision, 1)
    scale = min(max(scale, 0), precision)
    units = rng.randint(0, 10 ** precision - 1)
    return Decimal(units).scaleb(-scale)


def decimal_max_value(precision: int, scale: int) -> Decimal:
    integer_part = Decimal(10) ** (precision - scale) - 1
    fraction_part = (Decimal(10) ** scale - 1) / Decimal(10) ** scale
    return integer_part + fraction_part


def random_string(min_length: int, max_length: int, randomness_factor: int,
                  rng: random.Random) -> str:
    """
    Build a random string whose length is drawn from ``[min_length, max_length]``.

    Each character is drawn independently from the pool chosen by
    ``randomness_factor``. When ``max_length`` is below ``min_length`` the
    effective minimum becomes ``max_length``.
    """
    if max_length <= 0:
        return ''
    min_length = max(min(min_length, max_length), 0)
    length = rng.randint(min_length, max_length)
    pool = character_pool(randomness_factor)
    return ''.join(rng.choice(pool) for _ in range(length))


def fixed_length_text(length: Optional[int]) -> Optional[str]:
    """Repeat an alphanumeric pattern up to ``length`` characters."""
    if length is None:
        return None
    repeats = length // len(FIXED_TEXT_PATTERN) + 1
    return (FIXED_TEXT_PATTERN * repeats)[:length]


def _as_datetime(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())


def random_datetime(data_type: str, rng: random.Random,
                    min_date: Optional[Union[date, datetime]] = None,
                    max_date: Optional[Union[date, datetime]] = None) -> Union[date, datetime]:
    """
    Draw a date or datetime between ``min_date`` and ``max_date``.

    Missing bounds default to the range of the catalog type (``datetime`` starts
    at 1753-01-01, ``datetime2`` and ``date`` at 0001-01-01, all end at
    9999-12-31). A whole-day offset is drawn from ``[0, days_range)``; datetime
    kinds additionally get an hour offset from ``[0, 24)``. Date kinds return a
    ``date``.

    Args:
        data_type: Catalog type name ('datetime', 'datetime2', 'date', ...)
        rng: Source of randomness
        min_date: Optional lower bound
        max_date: Optional upper bound

    Returns:
        ``date`` for date kinds, ``datetime`` otherwise
    """
    default_min, default_max = type_mapping.datetime_range(data_type)
    start = _as_datetime(min_date) if min_date is not None else default_min
    end = _as_datetime(max_date) if max_date is not None else default_max

    days_range = (end - start).days
    offset_days = rng.randrange(days_range) if days_range > 0 else 0
    value = start + timedelta(days=offset_days)

    if type_mapping.family_for(data_type) == type_mapping.DATE:
        return value.date()
    return value + timedelta(hours=rng.randrange(24))


def random_binary(length: Optional[int], rng: random.Random) -> Optional[bytes]:
    if length is None:
        return None
    return bytes(rng.getrandbits(8) for _ in range(length))


def random_money(data_type: str, rng: random.Random) -> Decimal:
    """Draw a currency amount with two fractional digits (below 10,000 for money, 2,000 for smallmoney)."""
    cents = rng.randrange(type_mapping.money_max_cents(data_type))
    return Decimal(cents).scaleb(-2)


def random_geo_point(rng: random.Random) -> str:
    """Return a well-known-text point; x is the longitude and y the latitude."""
    latitude = rng.random() * 180.0 - 90.0
    longitude = rng.random() * 360.0 - 180.0
    return f"POINT({longitude:.6f} {latitude:.6f})"


def random_time(rng: random.Random) -> time:
    seconds = rng.randrange(86400)
    return time(seconds // 3600, (seconds % 3600) // 60, seconds % 60)


def random_float(rng: random.Random) -> float:
    return rng.random() * MAX_FLOAT_VALUE


def random_boolean(rng: random.Random) -> int:
    return rng.randint(0, 1)
