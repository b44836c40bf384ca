from __future__ import annotations
from typing import Mapping, Set
from .errors import AccessControlConfigError, AccessDeniedError
from .models import Privilege
from .names import CatalogSchemaName, Identity, QualifiedObjectName, SchemaTableName


class SystemAccessControl:
    """Authorization surface shared by every access control implementation.

    Checks return nothing when allowed and raise ``AccessDeniedError`` when
    denied; filters return the permitted subset of their input. This base
    class denies every check and filters every set down to nothing, so an
    implementation only opens up what it overrides.
    """

    NAME: str = ""

    def check_can_set_user(self, identity: Identity) -> None:
        raise AccessDeniedError(identity.principal or "<unauthenticated>", "set user", identity.user)

    def check_can_access_catalog(self, identity: Identity, catalog_name: str) -> None:
        raise AccessDeniedError(identity.user, "access catalog", catalog_name)

    def filter_catalogs(self, identity: Identity, catalogs: Set[str]) -> Set[str]:
        return set()

    def check_can_create_schema(self, identity: Identity, schema: CatalogSchemaName) -> None:
        raise AccessDeniedError(identity.user, "create schema", schema)

    def check_can_drop_schema(self, identity: Identity, schema: CatalogSchemaName) -> None:
        raise AccessDeniedError(identity.user, "drop schema", schema)

    def check_can_rename_schema(self, identity: Identity, schema: CatalogSchemaName, new_schema_name: str) -> None:
        raise AccessDeniedError(identity.user, f"rename schema to {new_schema_name}", schema)

    def check_can_show_schemas(self, identity: Identity, catalog_name: str) -> None:
        raise AccessDeniedError(identity.user, "show schemas of catalog", catalog_name)

    def check_can_access_schema(self, identity: Identity, schema: CatalogSchemaName) -> None:
        raise AccessDeniedError(identity.user, "access schema", schema)

    def filter_schemas(self, identity: Identity, catalog_name: str, schema_names: Set[str]) -> Set[str]:
        return set()

    def check_can_show_tables(self, identity: Identity, schema: CatalogSchemaName) -> None:
        raise AccessDeniedError(identity.user, "show tables of schema", schema)

    def check_can_access_table(self, identity: Identity, table: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "access table", table)

    def filter_tables(self, identity: Identity, catalog_name: str,
                      table_names: Set[SchemaTableName]) -> Set[SchemaTableName]:
        return set()

    def check_can_create_table(self, identity: Identity, table: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "create table", table)

    def check_can_drop_table(self, identity: Identity, table: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "drop table", table)

    def check_can_rename_table(self, identity: Identity, table: QualifiedObjectName,
                               new_table: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, f"rename table to {new_table}", table)

    def check_can_select_from_table(self, identity: Identity, table: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "select from table", table)

    def check_can_insert_into_table(self, identity: Identity, table: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "insert into table", table)

    def check_can_delete_from_table(self, identity: Identity, table: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "delete from table", table)

    def check_can_add_columns(self, identity: Identity, table: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "add columns to table", table)

    def check_can_rename_column(self, identity: Identity, table: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "rename a column in table", table)

    def check_can_create_view(self, identity: Identity, view: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "create view", view)

    def check_can_drop_view(self, identity: Identity, view: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "drop view", view)

    def check_can_select_from_view(self, identity: Identity, view: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "select from view", view)

    def check_can_create_view_with_select_from_table(self, identity: Identity, table: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "create view selecting from table", table)

    def check_can_create_view_with_select_from_view(self, identity: Identity, view: QualifiedObjectName) -> None:
        raise AccessDeniedError(identity.user, "create view selecting from view", view)

    def check_can_set_catalog_session_property(self, identity: Identity, catalog_name: str,
                                               property_name: str) -> None:
        raise AccessDeniedError(identity.user, "set catalog session property", f"{catalog_name}.{property_name}")

    def check_can_grant_table_privilege(self, identity: Identity, privilege: Privilege, table: QualifiedObjectName,
                                        grantee: str, with_grant_option: bool) -> None:
        raise AccessDeniedError(identity.user, f"grant {privilege.value} on table", table)

    def check_can_revoke_table_privilege(self, identity: Identity, privilege: Privilege, table: QualifiedObjectName,
                                         revokee: str, grant_option_for: bool) -> None:
        raise AccessDeniedError(identity.user, f"revoke {privilege.value} on table", table)


class AllowAllSystemAccessControl(SystemAccessControl):
    NAME = "allow-all"

    @classmethod
    def create(cls, options: Mapping[str, str]) -> "AllowAllSystemAccessControl":
        if options:
            raise AccessControlConfigError(
                f"Access control {cls.NAME} accepts no options, got: {', '.join(sorted(options))}"
            )
        return cls()

    def check_can_set_user(self, identity):
        pass

    def check_can_access_catalog(self, identity, catalog_name):
        pass

    def filter_catalogs(self, identity, catalogs):
        return set(catalogs)

    def check_can_create_schema(self, identity, schema):
        pass

    def check_can_drop_schema(self, identity, schema):
        pass

    def check_can_rename_schema(self, identity, schema, new_schema_name):
        pass

    def check_can_show_schemas(self, identity, catalog_name):
        pass

    def check_can_access_schema(self, identity, schema):
        pass

    def filter_schemas(self, identity, catalog_name, schema_names):
        return set(schema_names)

    def check_can_show_tables(self, identity, schema):
        pass

    def check_can_access_table(self, identity, table):
        pass

    def filter_tables(self, identity, catalog_name, table_names):
        return set(table_names)

    def check_can_create_table(self, identity, table):
        pass

    def check_can_drop_table(self, identity, table):
        pass

    def check_can_rename_table(self, identity, table, new_table):
        pass

    def check_can_select_from_table(self, identity, table):
        pass

    def check_can_insert_into_table(self, identity, table):
        pass

    def check_can_delete_from_table(self, identity, table):
        pass

    def check_can_add_columns(self, identity, table):
        pass

    def check_can_rename_column(self, identity, table):
        pass

    def check_can_create_view(self, identity, view):
        pass

    def check_can_drop_view(self, identity, view):
        pass

    def check_can_select_from_view(self, identity, view):
        pass

    def check_can_create_view_with_select_from_table(self, identity, table):
        pass

    def check_can_create_view_with_select_from_view(self, identity, view):
        pass

    def check_can_set_catalog_session_property(self, identity, catalog_name, property_name):
        pass

    def check_can_grant_table_privilege(self, identity, privilege, table, grantee, with_grant_option):
        pass

    def check_can_revoke_table_privilege(self, identity, privilege, table, revokee, grant_option_for):
        pass
