"""
Schema-driven fill of relational tables with synthetic rows.
"""

import logging
import random
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence, Union

from .catalog import SqlAlchemyCatalogReader, StaticCatalog, load_fill_plan
from .custom_generators import GeneratorManager
from .database import CollectingExecutor, SqlAlchemyExecutor, SqlAlchemyForeignKeySampler
from .dependency_handler import DependencyHandler, ForeignKeyHandler
from .exceptions import CatalogError, SchemaFillError, UnsatisfiableForeignKeyError
from .row_assembler import RowAssembler, ansi_quote
from .schemas import ColumnDescriptor, FillConfig, FillPlan

logger = logging.getLogger(__name__)


class FillState(str, Enum):
    START = 'start'
    FETCH_DESCRIPTORS = 'fetch_descriptors'
    BUILD_COLUMN_LIST = 'build_column_list'
    ASSEMBLE_ROW = 'assemble_row'
    EMIT = 'emit'
    DONE = 'done'
    ABORTED = 'aborted'


class FillResult:
    """Outcome of one fill operation."""

    def __init__(self, config: FillConfig):
        self.config = config
        self.state = FillState.START
        self.rows_emitted = 0
        self.columns: tuple = ()
        self.error: Optional[SchemaFillError] = None

    @property
    def table(self) -> str:
        return self.config.target_table

    @property
    def aborted(self) -> bool:
        return self.state == FillState.ABORTED

    def raise_for_status(self):
        """Raise the error that aborted the fill, if any."""
        if self.error is not None:
            raise self.error

    def __repr__(self):
        return (f"FillResult(table={self.table!r}, state={self.state.value!r}, "
                f"rows_emitted={self.rows_emitted}/{self.config.row_count})")


class SchemaFiller:
    """Fills tables with rows synthesized from their column metadata."""

    def __init__(self, catalog_reader, sampler, executor,
                 quote_identifier: Callable[[str], str] = ansi_quote,
                 binary_prefix: bool = False):
        """
        Initialize the filler with its collaborators.

        Args:
            catalog_reader: Object with ``fetch_descriptors(table_name, schema=None)``
                            returning the ordered column descriptors of a table
            sampler: Object with ``sample(table_name, column_name, schema=None)``
                     returning a ``ForeignKeySample``
            executor: Object with ``execute(row: RowInsert)`` performing the insertion
            quote_identifier: Function quoting identifiers in the literal statements
            binary_prefix: Render binary literals as ``0x...`` (SQL Server)
        """
        self.catalog_reader = catalog_reader
        self.executor = executor
        self.quote_identifier = quote_identifier
        self.binary_prefix = binary_prefix

        self.generator_manager = GeneratorManager()
        self.fk_handler = ForeignKeyHandler(sampler)

    @classmethod
    def from_engine(cls, bind) -> 'SchemaFiller':
        """
        Build a filler that reads the catalog of, samples from and inserts into a database.

        Args:
            bind: SQLAlchemy Engine, or a Connection whose transaction the caller manages
        """
        dialect = bind.dialect
        return cls(
            catalog_reader=SqlAlchemyCatalogReader(bind),
            sampler=SqlAlchemyForeignKeySampler(bind),
            executor=SqlAlchemyExecutor(bind),
            quote_identifier=dialect.identifier_preparer.quote_identifier,
            binary_prefix=dialect.name == 'mssql'
        )

    @classmethod
    def dry_run(cls, descriptors_by_table: Dict[str, Sequence[ColumnDescriptor]],
                seed: Optional[int] = None) -> 'SchemaFiller':
        """
        Build a filler that inserts nothing and keeps the assembled rows in memory.

        Foreign keys are sampled from rows generated earlier in the same dry run.
        The collected rows are available on ``filler.executor``.
        """
        collector = CollectingExecutor(seed=seed)
        return cls(catalog_reader=StaticCatalog(descriptors_by_table), sampler=collector, executor=collector)

    def register_generator(self, type_name: str, func: Callable[[ColumnDescriptor, random.Random], Any],
                           column_name: Optional[str] = None):
        """
        Register a custom generator for a type or a single column.

        Args:
            type_name: Catalog type name or type family the generator handles
            func: Function that takes (descriptor, rng) and returns a value
            column_name: If specified, this generator only applies to the named column
        """
        self.generator_manager.register_generator(type_name.lower(), func, column_name)

    def fill_table(self, config: Union[FillConfig, Dict[str, Any]]) -> FillResult:
        """
        Insert ``config.row_count`` synthetic rows into one table.

        Descriptors are read once; rows are assembled and emitted one at a time.
        A non-nullable foreign key whose referenced table is empty stops the fill:
        the result is ABORTED and names the column and referenced table. A table
        without insertable columns is ABORTED before any row. Errors raised by the
        executor propagate unchanged; rows already inserted stay.

        Args:
            config: FillConfig or a dict of its fields

        Returns:
            FillResult with the final state and the number of rows emitted
        """
        if isinstance(config, dict):
            config = FillConfig(**config)
        return self._fill(config, None)

    def _fill(self, config: FillConfig, descriptors: Optional[Sequence[ColumnDescriptor]]) -> FillResult:
        result = FillResult(config)
        logger.info(f"Filling {config.qualified_name} with {config.row_count} rows")

        result.state = FillState.FETCH_DESCRIPTORS
        if descriptors is None:
            descriptors = self.catalog_reader.fetch_descriptors(config.target_table, schema=config.schema_name)
        descriptors = tuple(descriptors)

        result.state = FillState.BUILD_COLUMN_LIST
        try:
            assembler = RowAssembler(
                descriptors,
                config,
                self.generator_manager,
                self.fk_handler,
                random.Random(config.seed),
                quote_identifier=self.quote_identifier,
                binary_prefix=self.binary_prefix
            )
        except CatalogError as e:
            result.state = FillState.ABORTED
            result.error = e
            logger.error(f"Aborted fill of {config.qualified_name}: {e}")
            return result
        result.columns = assembler.columns

        for _ in range(config.row_count):
            result.state = FillState.ASSEMBLE_ROW
            try:
                row = assembler.assemble_row()
            except UnsatisfiableForeignKeyError as e:
                result.state = FillState.ABORTED
                result.error = e
                logger.error(
                    f"Aborted fill of {config.qualified_name} after {result.rows_emitted} rows: {e}"
                )
                return result

            result.state = FillState.EMIT
            logger.debug(row.statement)
            self.executor.execute(row)
            result.rows_emitted += 1

        result.state = FillState.DONE
        logger.info(f"Completed {config.qualified_name}: {result.rows_emitted} rows")
        return result

    def fill_tables(self, plan: Union[FillPlan, Dict[str, Any], str]) -> Dict[str, FillResult]:
        """
        Fill several tables, referenced tables first.

        The fill order comes from the foreign keys between the planned tables.
        An aborted table does not stop the others. Every table is described
        before the first row is inserted, so a table missing from the catalog
        raises CatalogError and nothing is filled.

        Args:
            plan: FillPlan, a dict of its fields, or a path to a JSON/YAML plan file

        Returns:
            Dictionary mapping table names to their FillResult, in fill order
        """
        if isinstance(plan, str):
            plan = load_fill_plan(plan)
        elif isinstance(plan, dict):
            plan = FillPlan(**plan)

        configs = {config.target_table: config for config in plan.tables}
        descriptors_by_table = {
            name: tuple(self.catalog_reader.fetch_descriptors(name, schema=config.schema_name))
            for name, config in configs.items()
        }

        dependencies = DependencyHandler.extract_dependencies(descriptors_by_table)
        graph = DependencyHandler.build_dependency_graph(list(configs), dependencies)
        order = DependencyHandler.determine_generation_order(graph, default_order=list(configs))
        logger.info(f"Fill order: {', '.join(order)}")

        results: Dict[str, FillResult] = {}
        for name in order:
            results[name] = self._fill(configs[name], descriptors_by_table[name])
        return results
