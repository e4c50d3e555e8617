"""
schemafill - Synthetic row generation for relational tables

Fills arbitrary tables with schema-conformant random rows, driven only by the
column metadata in the database catalog, with single-hop foreign key sampling.
"""

from .catalog import SqlAlchemyCatalogReader, StaticCatalog, load_descriptors, load_fill_plan
from .exceptions import CatalogError, SchemaFillError, UnsatisfiableForeignKeyError
from .filler import FillResult, FillState, SchemaFiller
from .schemas import ColumnDescriptor, FillConfig, FillPlan

__all__ = [
    'SchemaFiller',
    'FillResult',
    'FillState',
    'ColumnDescriptor',
    'FillConfig',
    'FillPlan',
    'SqlAlchemyCatalogReader',
    'StaticCatalog',
    'load_descriptors',
    'load_fill_plan',
    'SchemaFillError',
    'CatalogError',
    'UnsatisfiableForeignKeyError',
]

__version__ = '0.1.0'
__license__ = 'LGPL-3.0-or-later'
__description__ = 'Schema-driven synthetic row generation for relational tables'
