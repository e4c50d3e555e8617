"""
Exceptions raised while filling tables with synthetic rows.
"""


class SchemaFillError(Exception):
    """Base class for all schemafill errors."""


class CatalogError(SchemaFillError):
    """The catalog could not describe the requested table."""


class UnsatisfiableForeignKeyError(SchemaFillError):
    """
    A non-nullable foreign key column references a table with no rows.

    Every later row would hit the same condition, so the whole fill operation
    for the table stops when this is raised.
    """

    def __init__(self, table: str, column: str, referenced_table: str):
        self.table = table
        self.column = column
        self.referenced_table = referenced_table
        super().__init__(
            f"{referenced_table} has no rows; cannot insert into non-nullable "
            f"foreign key column {table}.{column}"
        )
