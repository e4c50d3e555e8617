"""
Mapping of catalog type names onto the type families the generators understand.

Type names come straight from the catalog (``tinyint``, ``nvarchar``, ``datetime2``,
``VARCHAR(10)`` ...) and cover both the SQL Server and MySQL spellings.
"""

import re
from datetime import datetime
from typing import Dict, Optional, Tuple

# Type families
INTEGER = 'integer'
DECIMAL = 'decimal'
TEXT = 'text'
FIXED_TEXT = 'fixed_text'
LARGE_TEXT = 'large_text'
DATE = 'date'
DATETIME = 'datetime'
BINARY = 'binary'
MONEY = 'money'
FLOAT = 'float'
TIME = 'time'
GEO = 'geo'
BOOLEAN = 'boolean'
UNSUPPORTED = 'unsupported'

TYPE_FAMILIES: Dict[str, str] = {
    'tinyint': INTEGER,
    'smallint': INTEGER,
    'mediumint': INTEGER,
    'int': INTEGER,
    'integer': INTEGER,
    'bigint': INTEGER,
    'smallinteger': INTEGER,
    'biginteger': INTEGER,
    'decimal': DECIMAL,
    'numeric': DECIMAL,
    'varchar': TEXT,
    'nvarchar': TEXT,
    'character varying': TEXT,
    'string': TEXT,
    'unicode': TEXT,
    'char': FIXED_TEXT,
    'nchar': FIXED_TEXT,
    'character': FIXED_TEXT,
    'text': LARGE_TEXT,
    'ntext': LARGE_TEXT,
    'tinytext': LARGE_TEXT,
    'mediumtext': LARGE_TEXT,
    'longtext': LARGE_TEXT,
    'clob': LARGE_TEXT,
    'unicodetext': LARGE_TEXT,
    'date': DATE,
    'datetime': DATETIME,
    'datetime2': DATETIME,
    'smalldatetime': DATETIME,
    # MySQL timestamp; SQL Server timestamp (rowversion) columns are read as auto-generated
    'timestamp': DATETIME,
    'binary': BINARY,
    'varbinary': BINARY,
    'blob': BINARY,
    'tinyblob': BINARY,
    'mediumblob': BINARY,
    'longblob': BINARY,
    'image': BINARY,
    'largebinary': BINARY,
    'money': MONEY,
    'smallmoney': MONEY,
    'float': FLOAT,
    'real': FLOAT,
    'double': FLOAT,
    'double precision': FLOAT,
    'double_precision': FLOAT,
    'time': TIME,
    'geography': GEO,
    'geometry': GEO,
    'point': GEO,
    'bit': BOOLEAN,
    'bool': BOOLEAN,
    'boolean': BOOLEAN,
}

# Upper bound of the positive range of each integer kind. Negative values are never drawn.
INTEGER_MAX_VALUES: Dict[str, int] = {
    'tinyint': 255,
    'smallint': 32767,
    'smallinteger': 32767,
    'mediumint': 8388607,
    'int': 2147483647,
    'integer': 2147483647,
    'bigint': 9223372036854775807,
    'biginteger': 9223372036854775807,
}
DEFAULT_INTEGER_MAX = INTEGER_MAX_VALUES['int']

FAR_FUTURE = datetime(9999, 12, 31)
CALENDAR_MIN = datetime(1, 1, 1)

# Default (min, max) range for each date/datetime kind
DATETIME_RANGES: Dict[str, Tuple[datetime, datetime]] = {
    'datetime': (datetime(1753, 1, 1), FAR_FUTURE),
    'datetime2': (CALENDAR_MIN, FAR_FUTURE),
    'date': (CALENDAR_MIN, FAR_FUTURE),
    'smalldatetime': (datetime(1900, 1, 1), datetime(2079, 6, 6)),
    'timestamp': (datetime(1970, 1, 2), datetime(2038, 1, 18)),
}

# Money values are drawn in cents below these limits
MONEY_MAX_CENTS: Dict[str, int] = {
    'money': 1000000,
    'smallmoney': 200000,
}

_SUFFIX = re.compile(r'\s*\(.*\)\s*$')


def normalize_type_name(data_type: Optional[str]) -> str:
    """Lower-case a catalog type name and strip length/precision and sign modifiers."""
    if not data_type:
        return ''
    name = _SUFFIX.sub('', data_type.strip().lower())
    for modifier in (' unsigned', ' zerofill', ' identity'):
        name = name.replace(modifier, '')
    return name.strip()


def family_for(data_type: Optional[str]) -> str:
    """Return the type family of a catalog type name, or ``UNSUPPORTED``."""
    return TYPE_FAMILIES.get(normalize_type_name(data_type), UNSUPPORTED)


def integer_max(data_type: Optional[str]) -> int:
    return INTEGER_MAX_VALUES.get(normalize_type_name(data_type), DEFAULT_INTEGER_MAX)


def datetime_range(data_type: Optional[str]) -> Tuple[datetime, datetime]:
    return DATETIME_RANGES.get(normalize_type_name(data_type), DATETIME_RANGES['datetime2'])


def money_max_cents(data_type: Optional[str]) -> int:
    return MONEY_MAX_CENTS.get(normalize_type_name(data_type), MONEY_MAX_CENTS['money'])
