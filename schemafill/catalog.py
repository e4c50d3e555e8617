"""
Column descriptor sources: a live database catalog read through SQLAlchemy, or
descriptor and fill plan files in JSON/YAML.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from sqlalchemy import column as sql_column, inspect as sqla_inspect, select, table as sql_table
from sqlalchemy.types import NullType

from . import type_mapping
from .database import _connect
from .exceptions import CatalogError
from .schemas import ColumnDescriptor, FillPlan

logger = logging.getLogger(__name__)

# SQL Server row versions are set by the server on every insert
MSSQL_ROWVERSION_TYPES = ('timestamp', 'rowversion')

INFORMATION_SCHEMA_COLUMNS = sql_table(
    'columns',
    sql_column('table_schema'),
    sql_column('table_name'),
    sql_column('column_name'),
    sql_column('data_type'),
    schema='information_schema'
)


class SqlAlchemyCatalogReader:
    """
    Reads column descriptors for a table from the database catalog.

    Each call to ``fetch_descriptors`` takes a fresh snapshot; the fill operation
    reads it once and reuses it for every row.
    """

    def __init__(self, engine):
        """
        Initialize the catalog reader.

        Args:
            engine: SQLAlchemy Engine or Connection to inspect
        """
        self.engine = engine

    def fetch_descriptors(self, table_name: str, schema: Optional[str] = None) -> List[ColumnDescriptor]:
        """
        Describe the columns of a table, in catalog order.

        Args:
            table_name: Name of the table
            schema: Optional database schema of the table

        Returns:
            List of ColumnDescriptor, one per column

        Raises:
            CatalogError: If the table does not exist
        """
        inspector = sqla_inspect(self.engine)
        if not inspector.has_table(table_name, schema=schema):
            raise CatalogError(f"Table {table_name} not found" + (f" in schema {schema}" if schema else ""))

        columns = inspector.get_columns(table_name, schema=schema)
        primary_key = inspector.get_pk_constraint(table_name, schema=schema).get('constrained_columns') or []
        foreign_keys = self._foreign_key_map(inspector, table_name, schema)
        unique_columns = self._unique_columns(inspector, table_name, schema)
        dialect_name = inspector.dialect.name

        declared_types = {}
        if any(isinstance(c['type'], NullType) for c in columns):
            declared_types = self._declared_type_names(
                table_name, schema or inspector.default_schema_name
            )

        descriptors = []
        for column in columns:
            name = column['name']
            sa_type = column['type']
            data_type = type(sa_type).__name__.lower()
            if isinstance(sa_type, NullType):
                data_type = declared_types.get(name, data_type)
            is_primary_key = name in primary_key
            reference = foreign_keys.get(name)

            descriptors.append(ColumnDescriptor(
                name=name,
                data_type=data_type,
                max_length=getattr(sa_type, 'length', None),
                precision=getattr(sa_type, 'precision', None),
                scale=getattr(sa_type, 'scale', None),
                nullable=bool(column.get('nullable', True)),
                is_primary_key=is_primary_key,
                is_auto_generated=self._is_auto_generated(
                    column, data_type, is_primary_key, len(primary_key), reference, dialect_name
                ),
                is_unique=name in unique_columns,
                is_foreign_key=reference is not None,
                referenced_table=reference[0] if reference else None,
                referenced_schema=reference[1] if reference else None,
                referenced_column=reference[2] if reference else None,
            ))

        logger.debug(f"Read {len(descriptors)} column descriptors for {table_name}")
        return descriptors

    def _declared_type_names(self, table_name: str, schema: Optional[str]) -> Dict[str, str]:
        """
        Type names as declared in ``information_schema.columns``.

        Used for columns SQLAlchemy reflects as ``NullType``, such as SQL Server
        ``geography`` or MySQL ``point``, so they still reach their generator.
        """
        columns = INFORMATION_SCHEMA_COLUMNS.c
        query = select(columns.column_name, columns.data_type).where(columns.table_name == table_name)
        if schema:
            query = query.where(columns.table_schema == schema)

        with _connect(self.engine) as conn:
            rows = conn.execute(query).all()
        return {name: data_type.lower() for name, data_type in rows if data_type}

    @staticmethod
    def _foreign_key_map(inspector, table_name, schema) -> Dict[str, Tuple[str, Optional[str], str]]:
        """Map each foreign key column to (referenced table, referenced schema, referenced column)."""
        references = {}
        for fk in inspector.get_foreign_keys(table_name, schema=schema):
            for column, referred in zip(fk['constrained_columns'], fk['referred_columns']):
                references[column] = (fk['referred_table'], fk.get('referred_schema'), referred)
        return references

    @staticmethod
    def _unique_columns(inspector, table_name, schema) -> set:
        """Columns covered on their own by a unique constraint or unique index."""
        unique = set()
        try:
            constraints = inspector.get_unique_constraints(table_name, schema=schema)
        except NotImplementedError:
            constraints = []
        for constraint in constraints:
            if len(constraint['column_names']) == 1:
                unique.add(constraint['column_names'][0])
        for index in inspector.get_indexes(table_name, schema=schema):
            if index.get('unique') and len(index['column_names']) == 1:
                unique.add(index['column_names'][0])
        return unique

    @staticmethod
    def _is_auto_generated(column, data_type, is_primary_key, primary_key_size, reference, dialect_name) -> bool:
        """
        Identity, auto-increment, computed and row version columns never receive a value.

        SQLite does not report auto-increment; a lone INTEGER primary key there
        is an alias of the rowid and fills itself.
        """
        if column.get('computed') or column.get('identity'):
            return True
        if dialect_name == 'mssql' and data_type in MSSQL_ROWVERSION_TYPES:
            return True
        autoincrement = column.get('autoincrement', 'auto')
        if autoincrement is True:
            return True
        return (
            dialect_name == 'sqlite'
            and autoincrement == 'auto'
            and is_primary_key
            and primary_key_size == 1
            and reference is None
            and data_type == 'integer'
        )


class StaticCatalog:
    """Catalog backed by descriptors supplied up front, e.g. loaded with ``load_descriptors``."""

    def __init__(self, descriptors_by_table: Dict[str, Any]):
        """
        Args:
            descriptors_by_table: Dictionary mapping table names to descriptor lists,
                                  or to anything ``load_descriptors`` accepts
        """
        self.descriptors_by_table = {
            name: tuple(load_descriptors(columns) if not _is_descriptor_list(columns) else columns)
            for name, columns in descriptors_by_table.items()
        }

    def fetch_descriptors(self, table_name: str, schema: Optional[str] = None) -> List[ColumnDescriptor]:
        if table_name not in self.descriptors_by_table:
            raise CatalogError(f"Table {table_name} not found")
        return list(self.descriptors_by_table[table_name])


def _is_descriptor_list(columns: Any) -> bool:
    return isinstance(columns, (list, tuple)) and all(isinstance(c, ColumnDescriptor) for c in columns)


def _load_file(file_path: str) -> Any:
    """Load a JSON or YAML file."""
    if not os.path.exists(file_path):
        raise ValueError(f"File not found: {file_path}")

    file_ext = os.path.splitext(file_path)[1].lower()
    with open(file_path, 'r', encoding='utf-8') as f:
        if file_ext == '.json':
            return json.load(f)
        elif file_ext in ('.yml', '.yaml'):
            return yaml.safe_load(f)
    raise ValueError(f"Unsupported file format: {file_ext}. Use .json, .yml or .yaml")


def load_descriptors(source: Union[str, List[Dict[str, Any]], Dict[str, Any]]) -> List[ColumnDescriptor]:
    """
    Load column descriptors from a list of dicts or a JSON/YAML file.

    The file (or dict) may hold the list directly or under a ``columns`` key.

    Example:
        columns:
          - {name: id, data_type: int, is_primary_key: true, is_auto_generated: true, nullable: false}
          - {name: name, data_type: varchar, max_length: 10}
          - {name: dept_id, data_type: int, is_foreign_key: true, referenced_table: Dept}
    """
    data = _load_file(source) if isinstance(source, str) else source
    if isinstance(data, dict):
        data = data.get('columns')
    if not isinstance(data, list):
        raise ValueError("Descriptor source must be a list of columns or contain a 'columns' list")

    descriptors = [ColumnDescriptor(**column) for column in data]
    names = [d.name for d in descriptors]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(f"Duplicate column names: {', '.join(duplicates)}")
    return descriptors


def load_fill_plan(source: Union[str, Dict[str, Any]]) -> FillPlan:
    """Load a FillPlan from a dict or a JSON/YAML file."""
    data = _load_file(source) if isinstance(source, str) else source
    return FillPlan(**data)
