from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Identity:
    user: str
    # authenticated credential the session was opened with; user is the identity it acts as
    principal: Optional[str] = None


@dataclass(frozen=True)
class CatalogSchemaName:
    catalog_name: str
    schema_name: str

    def __str__(self) -> str:
        return f"{self.catalog_name}.{self.schema_name}"


@dataclass(frozen=True)
class SchemaTableName:
    schema_name: str
    table_name: str

    def __str__(self) -> str:
        return f"{self.schema_name}.{self.table_name}"


@dataclass(frozen=True)
class QualifiedObjectName:
    """Fully qualified table or view name."""

    catalog_name: str
    schema_name: str
    object_name: str

    @property
    def schema(self) -> CatalogSchemaName:
        return CatalogSchemaName(self.catalog_name, self.schema_name)

    def __str__(self) -> str:
        return f"{self.catalog_name}.{self.schema_name}.{self.object_name}"


@dataclass(frozen=True)
class TransactionId:
    value: str = field(default_factory=lambda: str(uuid.uuid4()))

    @staticmethod
    def create() -> "TransactionId":
        return TransactionId()

    def __str__(self) -> str:
        return self.value
