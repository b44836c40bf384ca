"""Access control driven by an ordered rule document.

Every decision takes the first rule whose patterns match the user and the
resource; when no rule matches the answer is deny. Filters keep exactly the
elements the corresponding single check would allow.

The rules are an immutable snapshot. With a refresh period the file is
re-read once the period has elapsed and the snapshot reference is replaced
as a whole, so a check always sees one complete rule set.
"""
from __future__ import annotations
import functools
import logging
import threading
import time
from datetime import timedelta
from typing import Callable, Mapping, Optional, Sequence
from .access_control import SystemAccessControl
from .config import FileBasedAccessControlConfig
from .errors import AccessControlConfigError, AccessDeniedError
from .evaluator import decide, filter_allowed
from .models import AccessControlRules, Privilege, TableAccessControlRule
from .names import CatalogSchemaName, Identity, QualifiedObjectName
from .parser import read_rules_file

logger = logging.getLogger(__name__)


def _can_access_catalog(rules: AccessControlRules, identity: Identity, catalog_name: str) -> bool:
    return decide(rules.catalogs, identity.user, (catalog_name,), lambda rule: rule.allow)


def _can_see_schema(rules: AccessControlRules, identity: Identity, schema: CatalogSchemaName) -> bool:
    if not _can_access_catalog(rules, identity, schema.catalog_name):
        return False
    return decide(rules.schemas, identity.user, (schema.catalog_name, schema.schema_name), lambda rule: True)


def _is_schema_owner(rules: AccessControlRules, identity: Identity, schema: CatalogSchemaName) -> bool:
    if not _can_access_catalog(rules, identity, schema.catalog_name):
        return False
    return decide(rules.schemas, identity.user, (schema.catalog_name, schema.schema_name), lambda rule: rule.owner)


def _check_table_rule(rules: AccessControlRules, table_rules: Sequence[TableAccessControlRule],
                      identity: Identity, table: QualifiedObjectName,
                      extract: Callable[[TableAccessControlRule], bool]) -> bool:
    if not _can_access_catalog(rules, identity, table.catalog_name):
        return False
    resource = (table.catalog_name, table.schema_name, table.object_name)
    return decide(table_rules, identity.user, resource, extract)


def _can_see_table(rules: AccessControlRules, identity: Identity, table: QualifiedObjectName) -> bool:
    return _check_table_rule(rules, rules.tables, identity, table, lambda rule: bool(rule.privileges))


def _has_table_privilege(rules: AccessControlRules, identity: Identity, table: QualifiedObjectName,
                         privilege: Privilege) -> bool:
    return _check_table_rule(rules, rules.tables, identity, table, lambda rule: rule.grants(privilege))


def _has_view_privilege(rules: AccessControlRules, identity: Identity, view: QualifiedObjectName,
                        privilege: Privilege) -> bool:
    return _check_table_rule(rules, rules.view_rules, identity, view, lambda rule: rule.grants(privilege))


def _can_grant(rules: AccessControlRules, identity: Identity, table: QualifiedObjectName,
               privilege: Privilege) -> bool:
    return _check_table_rule(rules, rules.tables, identity, table, lambda rule: rule.can_grant(privilege))


class FileBasedSystemAccessControl(SystemAccessControl):
    NAME = "file"

    def __init__(self, rules: AccessControlRules,
                 loader: Optional[Callable[[], AccessControlRules]] = None,
                 refresh_period: Optional[timedelta] = None,
                 clock: Callable[[], float] = time.monotonic):
        if refresh_period is not None and loader is None:
            raise ValueError("a refresh period requires a loader")
        self._rules = rules
        self._loader = loader
        self._refresh_seconds = refresh_period.total_seconds() if refresh_period is not None else None
        self._clock = clock
        self._lock = threading.Lock()
        self._expires_at = self._next_expiry()

    @classmethod
    def create(cls, options: Mapping[str, str]) -> "FileBasedSystemAccessControl":
        config = FileBasedAccessControlConfig.from_options(options)
        loader = functools.partial(read_rules_file, config.config_file)
        access_control = cls(loader(), loader=loader, refresh_period=config.refresh_period)
        if config.refresh_period is not None:
            logger.info("Rules in %s are reloaded every %s", config.config_file, config.refresh_period)
        return access_control

    @property
    def rules(self) -> AccessControlRules:
        return self._current_rules()

    def refresh(self) -> AccessControlRules:
        """Re-read the rule file now. Errors propagate and the old rules stay in force."""
        if self._loader is None:
            raise AccessControlConfigError("Access control rules were not loaded from a file")
        with self._lock:
            rules = self._loader()
            self._rules = rules
            self._expires_at = self._next_expiry()
        return rules

    def _next_expiry(self) -> Optional[float]:
        if self._refresh_seconds is None:
            return None
        return self._clock() + self._refresh_seconds

    def _current_rules(self) -> AccessControlRules:
        expires_at = self._expires_at
        if expires_at is not None and self._clock() >= expires_at:
            with self._lock:
                if self._expires_at is not None and self._clock() >= self._expires_at:
                    try:
                        self._rules = self._loader()
                    except AccessControlConfigError:
                        logger.exception("Failed to reload access control rules, keeping the previous rules")
                    self._expires_at = self._next_expiry()
        return self._rules

    def check_can_set_user(self, identity):
        rules = self._current_rules()
        principal = identity.principal
        if principal is None or not decide(rules.principals, principal, (identity.user,), lambda rule: rule.allow):
            raise AccessDeniedError(principal or "<unauthenticated>", "set user", identity.user)

    def check_can_access_catalog(self, identity, catalog_name):
        if not _can_access_catalog(self._current_rules(), identity, catalog_name):
            raise AccessDeniedError(identity.user, "access catalog", catalog_name)

    def filter_catalogs(self, identity, catalogs):
        rules = self._current_rules()
        return filter_allowed(catalogs, lambda catalog: _can_access_catalog(rules, identity, catalog))

    def check_can_create_schema(self, identity, schema):
        if not _is_schema_owner(self._current_rules(), identity, schema):
            raise AccessDeniedError(identity.user, "create schema", schema)

    def check_can_drop_schema(self, identity, schema):
        if not _is_schema_owner(self._current_rules(), identity, schema):
            raise AccessDeniedError(identity.user, "drop schema", schema)

    def check_can_rename_schema(self, identity, schema, new_schema_name):
        rules = self._current_rules()
        new_schema = CatalogSchemaName(schema.catalog_name, new_schema_name)
        if not (_is_schema_owner(rules, identity, schema) and _is_schema_owner(rules, identity, new_schema)):
            raise AccessDeniedError(identity.user, f"rename schema to {new_schema_name}", schema)

    def check_can_show_schemas(self, identity, catalog_name):
        if not _can_access_catalog(self._current_rules(), identity, catalog_name):
            raise AccessDeniedError(identity.user, "show schemas of catalog", catalog_name)

    def check_can_access_schema(self, identity, schema):
        if not _can_see_schema(self._current_rules(), identity, schema):
            raise AccessDeniedError(identity.user, "access schema", schema)

    def filter_schemas(self, identity, catalog_name, schema_names):
        rules = self._current_rules()
        return filter_allowed(
            schema_names,
            lambda schema_name: _can_see_schema(rules, identity, CatalogSchemaName(catalog_name, schema_name)),
        )

    def check_can_show_tables(self, identity, schema):
        if not _can_see_schema(self._current_rules(), identity, schema):
            raise AccessDeniedError(identity.user, "show tables of schema", schema)

    def check_can_access_table(self, identity, table):
        if not _can_see_table(self._current_rules(), identity, table):
            raise AccessDeniedError(identity.user, "access table", table)

    def filter_tables(self, identity, catalog_name, table_names):
        rules = self._current_rules()
        return filter_allowed(
            table_names,
            lambda name: _can_see_table(
                rules, identity, QualifiedObjectName(catalog_name, name.schema_name, name.table_name)
            ),
        )

    def _check_table_privilege(self, identity, table, privilege, action):
        if not _has_table_privilege(self._current_rules(), identity, table, privilege):
            raise AccessDeniedError(identity.user, action, table)

    def check_can_create_table(self, identity, table):
        self._check_table_privilege(identity, table, Privilege.CREATE, "create table")

    def check_can_drop_table(self, identity, table):
        self._check_table_privilege(identity, table, Privilege.DROP, "drop table")

    def check_can_rename_table(self, identity, table, new_table):
        rules = self._current_rules()
        if not (_has_table_privilege(rules, identity, table, Privilege.OWNERSHIP)
                and _has_table_privilege(rules, identity, new_table, Privilege.OWNERSHIP)):
            raise AccessDeniedError(identity.user, f"rename table to {new_table}", table)

    def check_can_select_from_table(self, identity, table):
        self._check_table_privilege(identity, table, Privilege.SELECT, "select from table")

    def check_can_insert_into_table(self, identity, table):
        self._check_table_privilege(identity, table, Privilege.INSERT, "insert into table")

    def check_can_delete_from_table(self, identity, table):
        self._check_table_privilege(identity, table, Privilege.DELETE, "delete from table")

    def check_can_add_columns(self, identity, table):
        self._check_table_privilege(identity, table, Privilege.ADD_COLUMN, "add columns to table")

    def check_can_rename_column(self, identity, table):
        self._check_table_privilege(identity, table, Privilege.RENAME_COLUMN, "rename a column in table")

    def _check_view_privilege(self, identity, view, privilege, action):
        if not _has_view_privilege(self._current_rules(), identity, view, privilege):
            raise AccessDeniedError(identity.user, action, view)

    def check_can_create_view(self, identity, view):
        self._check_view_privilege(identity, view, Privilege.CREATE, "create view")

    def check_can_drop_view(self, identity, view):
        self._check_view_privilege(identity, view, Privilege.DROP, "drop view")

    def check_can_select_from_view(self, identity, view):
        self._check_view_privilege(identity, view, Privilege.SELECT, "select from view")

    def check_can_create_view_with_select_from_table(self, identity, table):
        self._check_table_privilege(identity, table, Privilege.SELECT, "create view selecting from table")

    def check_can_create_view_with_select_from_view(self, identity, view):
        self._check_view_privilege(identity, view, Privilege.SELECT, "create view selecting from view")

    def check_can_set_catalog_session_property(self, identity, catalog_name, property_name):
        rules = self._current_rules()
        allowed = _can_access_catalog(rules, identity, catalog_name) and decide(
            rules.session_properties, identity.user, (catalog_name, property_name), lambda rule: rule.allow
        )
        if not allowed:
            raise AccessDeniedError(identity.user, "set catalog session property", f"{catalog_name}.{property_name}")

    def check_can_grant_table_privilege(self, identity, privilege, table, grantee, with_grant_option):
        # only the acting user's authority over the table counts, the grantee is not consulted
        if not _can_grant(self._current_rules(), identity, table, privilege):
            raise AccessDeniedError(identity.user, f"grant {privilege.value} on table", table)

    def check_can_revoke_table_privilege(self, identity, privilege, table, revokee, grant_option_for):
        if not _can_grant(self._current_rules(), identity, table, privilege):
            raise AccessDeniedError(identity.user, f"revoke {privilege.value} on table", table)
