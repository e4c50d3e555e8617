"""
Assembly of row insertion statements from column descriptors.

The column list is built once per fill operation; the value list is built once
per row by walking the same descriptor sequence, so the i-th value always
belongs to the i-th column.
"""

import logging
import random
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from .custom_generators import FOREIGN_KEY, GENERATE, GeneratorManager
from .dependency_handler import ForeignKeyHandler
from .exceptions import CatalogError
from .schemas import ColumnDescriptor, FillConfig

logger = logging.getLogger(__name__)

NULL_LITERAL = 'NULL'


class RowInsert(NamedTuple):
    """One complete row insertion: target table, column list and the matching values."""
    table: str
    schema: Optional[str]
    columns: Tuple[str, ...]
    values: Tuple[Any, ...]
    literals: Tuple[str, ...]
    statement: str

    def as_dict(self) -> Dict[str, Any]:
        return dict(zip(self.columns, self.values))


def ansi_quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def render_literal(value: Any, binary_prefix: bool = False) -> str:
    """
    Render a Python value as a SQL literal.

    Text, dates and times are quoted; numbers are not; None renders as NULL.
    Binary values render as ``0x...`` when ``binary_prefix`` is set (SQL Server)
    and as ``X'...'`` otherwise.
    """
    if value is None:
        return NULL_LITERAL
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, Decimal):
        return format(value, 'f')
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (bytes, bytearray)):
        if binary_prefix:
            return '0x' + value.hex().upper()
        return "X'" + value.hex().upper() + "'"
    if isinstance(value, datetime):
        # Years below 1000 keep four digits
        return "'" + value.isoformat(sep=' ', timespec='seconds') + "'"
    if isinstance(value, date):
        return "'" + value.isoformat() + "'"
    if isinstance(value, time):
        return "'" + value.strftime('%H:%M:%S') + "'"
    return "'" + str(value).replace("'", "''") + "'"


class RowAssembler:
    """Builds one ``RowInsert`` per call from a fixed descriptor sequence."""

    def __init__(
        self,
        descriptors: Sequence[ColumnDescriptor],
        config: FillConfig,
        generator_manager: GeneratorManager,
        fk_handler: ForeignKeyHandler,
        rng: random.Random,
        quote_identifier: Callable[[str], str] = ansi_quote,
        binary_prefix: bool = False
    ):
        """
        Initialize the assembler and resolve every column once.

        Args:
            descriptors: Ordered column descriptors of the target table
            config: Options of the current fill operation
            generator_manager: Resolves columns into generation directives
            fk_handler: Resolves foreign key columns
            rng: Source of randomness for this fill operation
            quote_identifier: Function quoting table and column identifiers
            binary_prefix: Render binary literals as ``0x...`` instead of ``X'...'``
        """
        self.descriptors = tuple(descriptors)
        self.config = config
        self.fk_handler = fk_handler
        self.rng = rng
        self.quote_identifier = quote_identifier
        self.binary_prefix = binary_prefix

        self.insertable = tuple(d for d in self.descriptors if not d.is_auto_generated)
        if not self.insertable:
            raise CatalogError(f"Table {config.qualified_name} has no insertable columns")

        self.directives = [generator_manager.resolve(d, config) for d in self.insertable]
        self.columns = self.column_list()
        self._insert_prefix = self._build_insert_prefix()

        # Values already issued to primary key / unique columns during this fill
        self._issued: Dict[str, set] = {
            d.name: set() for d in self.insertable if d.requires_unique_values
        }

    def column_list(self) -> Tuple[str, ...]:
        return tuple(d.name for d in self.descriptors if not d.is_auto_generated)

    def _build_insert_prefix(self) -> str:
        table = self.quote_identifier(self.config.target_table)
        if self.config.schema_name:
            table = self.quote_identifier(self.config.schema_name) + '.' + table
        column_clause = ', '.join(self.quote_identifier(c) for c in self.columns)
        return f"INSERT INTO {table} ({column_clause}) VALUES "

    def _generate(self, descriptor: ColumnDescriptor, directive) -> Any:
        issued = self._issued.get(descriptor.name)
        value = directive.generate(self.rng)
        if issued is None or value is None:
            return value

        attempts = 1
        while value in issued and attempts < self.config.max_unique_attempts:
            value = directive.generate(self.rng)
            attempts += 1
        if value in issued:
            logger.warning(
                f"Could not draw a unique value for {self.config.target_table}.{descriptor.name} "
                f"after {attempts} attempts"
            )
        issued.add(value)
        return value

    def value_list(self) -> List[Any]:
        """
        Resolve one value per insertable column, in column order.

        Raises:
            UnsatisfiableForeignKeyError: If a non-nullable foreign key references an empty table
        """
        values = []
        for descriptor, directive in zip(self.insertable, self.directives):
            if directive.action == FOREIGN_KEY:
                values.append(self.fk_handler.resolve(descriptor, self.config.target_table))
            elif directive.action == GENERATE:
                values.append(self._generate(descriptor, directive))
            else:
                values.append(None)
        return values

    def assemble_row(self) -> RowInsert:
        values = tuple(self.value_list())
        literals = tuple(render_literal(v, self.binary_prefix) for v in values)
        statement = self._insert_prefix + '(' + ', '.join(literals) + ');'
        return RowInsert(
            table=self.config.target_table,
            schema=self.config.schema_name,
            columns=self.columns,
            values=values,
            literals=literals,
            statement=statement
        )
