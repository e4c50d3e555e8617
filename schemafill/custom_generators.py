import logging
import random
from functools import partial
from typing import Any, Callable, Dict, NamedTuple, Optional

from . import generators, type_mapping
from .schemas import ColumnDescriptor, FillConfig

logger = logging.getLogger(__name__)

# Directive actions
OMIT = 'omit'
NULL = 'null'
FOREIGN_KEY = 'foreign_key'
GENERATE = 'generate'


class GenerationDirective(NamedTuple):
    """Resolved instruction for producing one column's value."""
    action: str
    generate: Optional[Callable[[random.Random], Any]] = None
    reason: Optional[str] = None


def _integer(descriptor, rng, config):
    return generators.random_int(descriptor.data_type, rng)


def _decimal(descriptor, rng, config):
    if descriptor.precision:
        precision, scale = descriptor.precision, descriptor.scale or 0
    else:
        precision, scale = config.decimal_precision, config.decimal_scale
    return generators.random_decimal(precision, scale, rng)


def _text(descriptor, rng, config):
    max_length = descriptor.max_length or config.unbounded_text_length
    min_length = min(config.varchar_min_length, max_length)
    return generators.random_string(min_length, max_length, config.randomness_factor, rng)


def _large_text(descriptor, rng, config):
    max_length = config.large_text_length
    if descriptor.max_length:
        max_length = min(descriptor.max_length, max_length)
    min_length = min(config.varchar_min_length, max_length)
    return generators.random_string(min_length, max_length, config.randomness_factor, rng)


def _fixed_text(descriptor, rng, config):
    return generators.fixed_length_text(descriptor.max_length)


def _datetime(descriptor, rng, config):
    return generators.random_datetime(descriptor.data_type, rng)


def _binary(descriptor, rng, config):
    return generators.random_binary(descriptor.max_length, rng)


def _money(descriptor, rng, config):
    return generators.random_money(descriptor.data_type, rng)


def _float(descriptor, rng, config):
    return generators.random_float(rng)


def _time(descriptor, rng, config):
    return generators.random_time(rng)


def _geo(descriptor, rng, config):
    return generators.random_geo_point(rng)


def _boolean(descriptor, rng, config):
    return generators.random_boolean(rng)


BUILTIN_GENERATORS: Dict[str, Callable[[ColumnDescriptor, random.Random, FillConfig], Any]] = {
    type_mapping.INTEGER: _integer,
    type_mapping.DECIMAL: _decimal,
    type_mapping.TEXT: _text,
    type_mapping.LARGE_TEXT: _large_text,
    type_mapping.FIXED_TEXT: _fixed_text,
    type_mapping.DATE: _datetime,
    type_mapping.DATETIME: _datetime,
    type_mapping.BINARY: _binary,
    type_mapping.MONEY: _money,
    type_mapping.FLOAT: _float,
    type_mapping.TIME: _time,
    type_mapping.GEO: _geo,
    type_mapping.BOOLEAN: _boolean,
}

# Families that produce nothing without a length bound
LENGTH_BOUND_FAMILIES = (type_mapping.FIXED_TEXT, type_mapping.BINARY)


class GeneratorManager:
    """Manages built-in and custom generators and resolves columns into directives."""

    def __init__(self):
        """Initialize the generator manager."""
        # Registry for custom generators by type: type_name -> fn(descriptor, rng) -> value
        self.type_generators: Dict[str, Callable[[ColumnDescriptor, random.Random], Any]] = {}

        # Registry for custom generators by column name: col_name -> fn(descriptor, rng) -> value
        self.column_generators: Dict[str, Callable[[ColumnDescriptor, random.Random], Any]] = {}

    def register_generator(self, type_name: str, func: Callable[[ColumnDescriptor, random.Random], Any],
                           column_name: Optional[str] = None):
        """
        Register a custom generator for a type or a single column.

        Args:
            type_name: A catalog type name (e.g. 'nvarchar') or a type family (e.g. 'text', 'integer')
            func: Function that takes (descriptor: ColumnDescriptor, rng: random.Random) and
                  returns the value to insert
            column_name: If specified, this generator only applies to the named column
                        rather than all columns of the specified type
        """
        if column_name:
            self.column_generators[column_name] = func
        else:
            self.type_generators[type_mapping.normalize_type_name(type_name)] = func

    def _custom_generator(self, descriptor: ColumnDescriptor):
        if descriptor.name in self.column_generators:
            return self.column_generators[descriptor.name]
        type_name = type_mapping.normalize_type_name(descriptor.data_type)
        if type_name in self.type_generators:
            return self.type_generators[type_name]
        return self.type_generators.get(descriptor.type_family)

    def resolve(self, descriptor: ColumnDescriptor, config: FillConfig) -> GenerationDirective:
        """
        Resolve a column descriptor into a generation directive.

        Precedence: auto-generated columns are omitted, foreign keys defer to the
        foreign key resolver, custom generators come next, then the built-in
        generator for the column's type family. Types without a generator and
        length-bound types without a length become NULL.

        Args:
            descriptor: Column to resolve
            config: Options of the current fill operation

        Returns:
            GenerationDirective for the column
        """
        if descriptor.is_auto_generated:
            return GenerationDirective(OMIT)

        if descriptor.is_foreign_key:
            return GenerationDirective(FOREIGN_KEY)

        custom = self._custom_generator(descriptor)
        if custom is not None:
            return GenerationDirective(GENERATE, partial(custom, descriptor))

        family = descriptor.type_family
        builtin = BUILTIN_GENERATORS.get(family)
        if builtin is None:
            logger.warning(
                f"No generator for type '{descriptor.data_type}' of column {descriptor.name}; inserting NULL"
            )
            return GenerationDirective(NULL, reason='unsupported type')

        if family in LENGTH_BOUND_FAMILIES and descriptor.max_length is None:
            logger.warning(
                f"Column {descriptor.name} ({descriptor.data_type}) has no length; inserting NULL"
            )
            return GenerationDirective(NULL, reason='missing length')

        return GenerationDirective(GENERATE, partial(builtin, descriptor, config=config))
