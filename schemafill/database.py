"""
Database collaborators of a fill operation: the foreign key sampler and the
statement executors.
"""

import logging
import random
from contextlib import nullcontext
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

import pandas as pd
from sqlalchemy import MetaData, Table, column, func, select, table
from sqlalchemy.engine import Connection

from .row_assembler import RowInsert

logger = logging.getLogger(__name__)


class ForeignKeySample(NamedTuple):
    """Row count of a referenced table and one value sampled from it (None when empty)."""
    row_count: int
    value: Any = None


def _connect(bind):
    """Use a Connection as-is, or open one from an Engine."""
    if isinstance(bind, Connection):
        return nullcontext(bind)
    return bind.connect()


def random_order(dialect_name: str):
    """SQL function that orders rows randomly on the given dialect."""
    if dialect_name == 'mssql':
        return func.newid()
    if dialect_name in ('mysql', 'mariadb'):
        return func.rand()
    return func.random()


class SqlAlchemyForeignKeySampler:
    """
    Samples live values from referenced tables.

    Queries are built with SQLAlchemy Core, so table and column identifiers are
    quoted by the dialect's compiler rather than interpolated into SQL text.
    Nothing is locked; rows deleted concurrently by another writer may be
    sampled just before they disappear.
    """

    def __init__(self, bind):
        """
        Args:
            bind: SQLAlchemy Engine or Connection
        """
        self.bind = bind

    def sample(self, table_name: str, column_name: str, schema: Optional[str] = None) -> ForeignKeySample:
        referenced = table(table_name, column(column_name), schema=schema)
        target = referenced.c[column_name]
        count_query = select(func.count()).select_from(referenced)
        sample_query = (
            select(target)
            .where(target.is_not(None))
            .order_by(random_order(self.bind.dialect.name))
            .limit(1)
        )

        with _connect(self.bind) as conn:
            row_count = conn.execute(count_query).scalar_one()
            value = conn.execute(sample_query).scalar() if row_count else None
        return ForeignKeySample(row_count, value)


class SqlAlchemyExecutor:
    """
    Inserts assembled rows through SQLAlchemy with bound parameters.

    With an Engine every row is committed on its own; with a Connection the
    caller owns the transaction, which makes the whole fill atomic.
    """

    def __init__(self, bind):
        """
        Args:
            bind: SQLAlchemy Engine or Connection
        """
        self.bind = bind
        self._tables: Dict[Tuple[Optional[str], str], Table] = {}

    def _table(self, row: RowInsert) -> Table:
        key = (row.schema, row.table)
        if key not in self._tables:
            self._tables[key] = Table(row.table, MetaData(), schema=row.schema, autoload_with=self.bind)
        return self._tables[key]

    def execute(self, row: RowInsert):
        """Insert one row. Database errors propagate to the caller unchanged."""
        target = self._table(row)
        if isinstance(self.bind, Connection):
            self.bind.execute(target.insert(), [row.as_dict()])
        else:
            with self.bind.begin() as conn:
                conn.execute(target.insert(), [row.as_dict()])


class CollectingExecutor:
    """
    Keeps assembled rows in memory instead of inserting them (dry run).

    It also samples foreign key values from the rows it has collected, so a
    multi-table dry run resolves references against the generated parent rows.
    """

    def __init__(self, seed: Optional[int] = None):
        self.rows: List[RowInsert] = []
        self.rng = random.Random(seed)

    def execute(self, row: RowInsert):
        self.rows.append(row)

    def rows_for(self, table_name: str) -> List[RowInsert]:
        return [row for row in self.rows if row.table == table_name]

    def statements(self, table_name: Optional[str] = None) -> List[str]:
        rows = self.rows_for(table_name) if table_name else self.rows
        return [row.statement for row in rows]

    def sample(self, table_name: str, column_name: str, schema: Optional[str] = None) -> ForeignKeySample:
        """
        Sample a value of ``column_name`` from the collected rows of ``table_name``.

        Columns absent from the collected rows are auto-generated by the
        database; their values are approximated by the 1-based insertion
        position, as an identity column starting at 1 would assign them.
        """
        rows = self.rows_for(table_name)
        values = []
        for position, row in enumerate(rows, 1):
            if column_name in row.columns:
                values.append(row.as_dict()[column_name])
            else:
                values.append(position)
        values = [v for v in values if v is not None]
        if not values:
            return ForeignKeySample(len(rows))
        return ForeignKeySample(len(rows), self.rng.choice(values))

    def to_dataframe(self, table_name: str) -> pd.DataFrame:
        rows = self.rows_for(table_name)
        if not rows:
            return pd.DataFrame()
        return pd.DataFrame([row.values for row in rows], columns=list(rows[0].columns))

    def to_dataframes(self) -> Dict[str, pd.DataFrame]:
        tables = list(dict.fromkeys(row.table for row in self.rows))
        return {name: self.to_dataframe(name) for name in tables}
