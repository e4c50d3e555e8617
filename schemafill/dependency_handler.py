import logging
import networkx as nx
from typing import Any, Dict, Iterable, List, Optional

from .exceptions import UnsatisfiableForeignKeyError
from .schemas import ColumnDescriptor

logger = logging.getLogger(__name__)


class ForeignKeyHandler:
    """
    Resolves foreign key columns by sampling live values from the referenced table.

    The referenced table is read again for every foreign key column of every row;
    nothing is cached between rows.
    """

    def __init__(self, sampler):
        """
        Initialize the ForeignKeyHandler.

        Args:
            sampler: Object with a ``sample(table, column, schema=None)`` method returning
                     a ``ForeignKeySample`` (row count of the referenced table and one
                     randomly chosen value)
        """
        self.sampler = sampler

    def resolve(self, descriptor: ColumnDescriptor, table_name: str) -> Any:
        """
        Resolve the value of a foreign key column for one row.

        Args:
            descriptor: The foreign key column
            table_name: Name of the table being filled, used for error reporting

        Returns:
            A value sampled from the referenced table, or None (NULL) when the
            referenced table is empty and the column is nullable

        Raises:
            UnsatisfiableForeignKeyError: If the referenced table is empty and the
                column is not nullable
        """
        sample = self.sampler.sample(
            descriptor.referenced_table,
            descriptor.target_column,
            schema=descriptor.referenced_schema
        )
        if sample.row_count > 0 and sample.value is not None:
            return sample.value

        if descriptor.nullable:
            logger.warning(
                f"{descriptor.referenced_table} has no rows; inserting NULL for nullable "
                f"foreign key column {descriptor.name}"
            )
            return None

        logger.error(
            f"{descriptor.referenced_table} has no rows; cannot insert into non-nullable "
            f"foreign key column {descriptor.name}"
        )
        raise UnsatisfiableForeignKeyError(table_name, descriptor.name, descriptor.referenced_table)


class DependencyHandler:
    """Orders tables so that referenced tables are filled before the tables that reference them."""

    @staticmethod
    def build_dependency_graph(nodes, dependencies):
        """
        Build a directed graph of dependencies.

        Args:
            nodes: List of node names to add to the graph
            dependencies: Dict mapping node names to their dependencies

        Returns:
            NetworkX DiGraph representing dependencies between nodes
        """
        graph = nx.DiGraph()

        for node in nodes:
            graph.add_node(node)

        # Edges go from dependency to dependent
        for node, deps in dependencies.items():
            if node not in graph:
                graph.add_node(node)

            for dep in deps:
                if dep not in graph:
                    graph.add_node(dep)
                graph.add_edge(dep, node)

        return graph

    @staticmethod
    def extract_dependencies(descriptors_by_table: Dict[str, Iterable[ColumnDescriptor]]) -> Dict[str, List[str]]:
        """
        Extract table dependencies from foreign key descriptors.

        Only tables that are part of the fill are kept as dependencies; a table
        referencing itself does not depend on itself.

        Args:
            descriptors_by_table: Dictionary mapping table names to their column descriptors

        Returns:
            Dictionary mapping table names to lists of referenced tables
        """
        all_dependencies = {table_name: [] for table_name in descriptors_by_table}

        for table_name, descriptors in descriptors_by_table.items():
            for descriptor in descriptors:
                if not descriptor.is_foreign_key:
                    continue
                parent = descriptor.referenced_table
                if parent == table_name or parent not in all_dependencies:
                    continue
                if parent not in all_dependencies[table_name]:
                    all_dependencies[table_name].append(parent)

        return all_dependencies

    @staticmethod
    def has_cycle(graph) -> bool:
        return not nx.is_directed_acyclic_graph(graph)

    @staticmethod
    def determine_generation_order(dependency_graph, default_order: Optional[List[str]] = None):
        """
        Determine the fill order based on a dependency graph.

        Args:
            dependency_graph: NetworkX DiGraph representing table dependencies
            default_order: Order used when the graph has a cycle (defaults to node order)

        Returns:
            List of table names, referenced tables first
        """
        try:
            return list(nx.topological_sort(dependency_graph))
        except nx.NetworkXUnfeasible:
            logger.warning("Cycle detected in foreign key dependencies. Using the given table order.")
            return list(default_order) if default_order is not None else list(dependency_graph.nodes())
