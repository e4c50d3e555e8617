"""
Schema definitions for the schemafill library.
Contains Pydantic models for column metadata and fill configuration.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Optional

from . import type_mapping
from .generators import CHARACTER_POOLS, DEFAULT_RANDOMNESS_FACTOR


class ColumnDescriptor(BaseModel):
    """
    Metadata for one table column, as read from the catalog.

    Descriptors are read-only snapshots; their order within a table is the order
    used for both the column list and every value list.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    data_type: str = Field(..., description="Catalog type name, e.g. 'nvarchar' or 'tinyint'")
    max_length: Optional[int] = Field(None, description="Length bound for text and binary types; None means unbounded")
    precision: Optional[int] = None
    scale: Optional[int] = None
    nullable: bool = True
    is_primary_key: bool = False
    is_auto_generated: bool = Field(False, description="Identity / auto-increment column, never assigned a value")
    is_unique: bool = False
    is_foreign_key: bool = False
    referenced_table: Optional[str] = None
    referenced_schema: Optional[str] = None
    referenced_column: Optional[str] = Field(
        None,
        description="Referenced column; when missing the referencing column's own name is assumed"
    )

    @model_validator(mode="after")
    def validate_foreign_key(self):
        if self.is_foreign_key and not self.referenced_table:
            raise ValueError(f"Foreign key column '{self.name}' must name its referenced table")
        return self

    @property
    def type_family(self) -> str:
        return type_mapping.family_for(self.data_type)

    @property
    def target_column(self) -> str:
        """Column sampled in the referenced table."""
        return self.referenced_column or self.name

    @property
    def requires_unique_values(self) -> bool:
        return (self.is_primary_key or self.is_unique) and not self.is_foreign_key


class FillConfig(BaseModel):
    """
    Options for one fill operation: insert ``row_count`` synthetic rows into one table.
    """

    target_table: str = Field(..., min_length=1)
    schema_name: Optional[str] = Field(None, description="Database schema of the target table, e.g. 'dbo'")
    row_count: int = Field(..., gt=0, description="Number of rows to insert")
    randomness_factor: int = Field(
        DEFAULT_RANDOMNESS_FACTOR,
        description="Character pool for text columns: 1 lowercase, 2 +uppercase, 3 +digits, 4 +symbols"
    )
    varchar_min_length: int = Field(1, ge=1, description="Minimum length of generated variable-length text")
    seed: Optional[int] = Field(None, description="Seed for a reproducible fill")

    unbounded_text_length: int = Field(4000, gt=0, description="Length used for text columns declared without a bound")
    large_text_length: int = Field(255, gt=0, description="Length used for large text columns such as TEXT")
    decimal_precision: int = Field(18, gt=0, le=38, description="Precision used when the catalog gives none")
    decimal_scale: int = Field(4, ge=0, le=38, description="Scale used when the catalog gives none")
    max_unique_attempts: int = Field(25, gt=0, description="Redraws allowed for primary key and unique columns")

    @field_validator("randomness_factor", mode="before")
    def fallback_randomness_factor(cls, v):
        try:
            v = int(v)
        except (TypeError, ValueError):
            return DEFAULT_RANDOMNESS_FACTOR
        if v not in CHARACTER_POOLS:
            return DEFAULT_RANDOMNESS_FACTOR
        return v

    @model_validator(mode="after")
    def validate_decimal_defaults(self):
        if self.decimal_scale > self.decimal_precision:
            raise ValueError(
                f"decimal_scale ({self.decimal_scale}) cannot be greater than "
                f"decimal_precision ({self.decimal_precision})"
            )
        return self

    @property
    def qualified_name(self) -> str:
        if self.schema_name:
            return f"{self.schema_name}.{self.target_table}"
        return self.target_table


class FillPlan(BaseModel):
    """Several fill operations run together, referenced tables first."""

    tables: List[FillConfig] = Field(..., min_length=1)
    seed: Optional[int] = Field(None, description="Seed applied to every table that does not set its own")

    @field_validator("tables")
    def validate_unique_tables(cls, v):
        names = [table.target_table for table in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate target tables: {', '.join(duplicates)}")
        return v

    @model_validator(mode="after")
    def apply_plan_seed(self):
        if self.seed is not None:
            self.tables = [
                table if table.seed is not None else table.model_copy(update={"seed": self.seed})
                for table in self.tables
            ]
        return self
