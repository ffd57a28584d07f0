"""Pydantic schemas for table, column and relation metadata."""
from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Semantic column type tags; unknown database types pass through lower-cased.
SEMANTIC_TYPES = (
    "varchar", "integer", "bigint", "real", "decimal",
    "boolean", "timestamp", "json", "blob",
)
INTEGER_TYPES = {"integer", "bigint"}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ForeignKeyRef(_CamelModel):
    table: str
    column: str


class ColumnMetadata(_CamelModel):
    name: str
    type: str
    nullable: bool = True
    primary_key: bool = False
    default_value: Optional[Any] = None    # "autoincrement" | "now()" | "uuid()" | "cuid()" | literal
    foreign_key: Optional[ForeignKeyRef] = None


class Relation(_CamelModel):
    type: Literal["belongsTo", "hasMany"]
    table: str
    local_field: str
    foreign_field: str


class TableMetadata(_CamelModel):
    name: str
    columns: list[ColumnMetadata]
    relations: list[Relation] = []

    def get_column(self, name: str) -> Optional[ColumnMetadata]:
        return next((c for c in self.columns if c.name == name), None)

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def primary_key(self) -> str:
        """First column flagged primary, falling back to a literal "id"."""
        pk = next((c for c in self.columns if c.primary_key), None)
        return pk.name if pk else "id"
