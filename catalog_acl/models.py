from __future__ import annotations
import re
from abc import abstractmethod
from enum import Enum
from typing import FrozenSet, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

ANY = re.compile(".*")


def pattern_matches(pattern: re.Pattern, candidate: str) -> bool:
    # anchored at both ends; no case folding or unicode normalization
    return pattern.fullmatch(candidate) is not None


class Privilege(str, Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    DELETE = "DELETE"
    CREATE = "CREATE"
    DROP = "DROP"
    ADD_COLUMN = "ADD_COLUMN"
    RENAME_COLUMN = "RENAME_COLUMN"
    OWNERSHIP = "OWNERSHIP"
    GRANT_SELECT = "GRANT_SELECT"


class AccessControlRule(BaseModel):
    """A user pattern plus one pattern per segment of the resource name."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    user: re.Pattern = ANY

    @abstractmethod
    def resource_patterns(self) -> Tuple[re.Pattern, ...]:
        ...

    def matches(self, user: str, *resource: str) -> bool:
        patterns = self.resource_patterns()
        if len(patterns) != len(resource):
            raise ValueError(
                f"{type(self).__name__} matches {len(patterns)} resource segments, got {len(resource)}"
            )
        if not pattern_matches(self.user, user):
            return False
        return all(pattern_matches(p, segment) for p, segment in zip(patterns, resource))


class CatalogAccessControlRule(AccessControlRule):
    catalog: re.Pattern = ANY
    allow: bool = False

    def resource_patterns(self) -> Tuple[re.Pattern, ...]:
        return (self.catalog,)


class CatalogSchemaAccessControlRule(AccessControlRule):
    catalog: re.Pattern = ANY
    schema_name: re.Pattern = Field(default=ANY, alias="schema")
    owner: bool = False

    def resource_patterns(self) -> Tuple[re.Pattern, ...]:
        return (self.catalog, self.schema_name)


class TableAccessControlRule(AccessControlRule):
    catalog: re.Pattern = ANY
    schema_name: re.Pattern = Field(default=ANY, alias="schema")
    table: re.Pattern = ANY
    privileges: FrozenSet[Privilege] = frozenset()

    def resource_patterns(self) -> Tuple[re.Pattern, ...]:
        return (self.catalog, self.schema_name, self.table)

    def grants(self, privilege: Privilege) -> bool:
        if privilege in self.privileges or Privilege.OWNERSHIP in self.privileges:
            return True
        return privilege is Privilege.SELECT and Privilege.GRANT_SELECT in self.privileges

    def can_grant(self, privilege: Privilege) -> bool:
        if Privilege.OWNERSHIP in self.privileges:
            return True
        return privilege is Privilege.SELECT and Privilege.GRANT_SELECT in self.privileges

    @field_serializer("privileges")
    def _ordered_privileges(self, privileges: FrozenSet[Privilege]):
        return [p.value for p in Privilege if p in privileges]


class SessionPropertyAccessControlRule(AccessControlRule):
    catalog: re.Pattern = ANY
    property_name: re.Pattern = Field(default=ANY, alias="property")
    allow: bool = False

    def resource_patterns(self) -> Tuple[re.Pattern, ...]:
        return (self.catalog, self.property_name)


class PrincipalUserMatchRule(BaseModel):
    """Which users an authenticated principal may act as.

    ``principal_to_user`` is a ``re`` replacement template (``\\1``,
    ``\\g<name>``) expanded against the principal match.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    principal: re.Pattern
    user: Optional[re.Pattern] = None
    principal_to_user: Optional[str] = None
    allow: bool = False

    @model_validator(mode="after")
    def _require_user_mapping(self):
        if self.user is None and self.principal_to_user is None:
            raise ValueError("a principal rule must provide at least one of user and principal_to_user")
        if self.principal_to_user is not None:
            # expand once against an empty match carrying the same groups
            names = {index: name for name, index in self.principal.groupindex.items()}
            groups = "".join(
                f"(?P<{names[i]}>)" if i in names else "()" for i in range(1, self.principal.groups + 1)
            )
            try:
                re.compile(groups).fullmatch("").expand(self.principal_to_user)
            except (re.error, IndexError) as e:
                raise ValueError(f"principal_to_user is not a valid template: {e}") from e
        return self

    def matches(self, principal: str, user: str) -> bool:
        match = self.principal.fullmatch(principal)
        if match is None:
            return False
        if self.user is not None and pattern_matches(self.user, user):
            return True
        if self.principal_to_user is not None:
            return match.expand(self.principal_to_user) == user
        return False


class AccessControlRules(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    catalogs: Tuple[CatalogAccessControlRule, ...] = ()
    schemas: Tuple[CatalogSchemaAccessControlRule, ...] = ()
    tables: Tuple[TableAccessControlRule, ...] = ()
    # None means views are governed by the table rules
    views: Optional[Tuple[TableAccessControlRule, ...]] = None
    session_properties: Tuple[SessionPropertyAccessControlRule, ...] = ()
    principals: Tuple[PrincipalUserMatchRule, ...] = ()

    @property
    def view_rules(self) -> Tuple[TableAccessControlRule, ...]:
        return self.tables if self.views is None else self.views

    def rule_count(self) -> int:
        return (len(self.catalogs) + len(self.schemas) + len(self.tables) + len(self.views or ())
                + len(self.session_properties) + len(self.principals))

    @staticmethod
    def empty() -> "AccessControlRules":
        return AccessControlRules()
