"""Registry of access controls and dispatch of checks to them.

One system access control always applies. A catalog may additionally have
its own access control; it is consulted for resources in that catalog and
must allow as well. Registration replaces whole references under a lock,
lookups never lock and read each reference once per call.
"""
from __future__ import annotations
import logging
import threading
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Set, Union
from .access_control import AllowAllSystemAccessControl, SystemAccessControl
from .errors import AccessControlConfigError, AccessDeniedError
from .file_based import FileBasedSystemAccessControl
from .models import Privilege
from .names import CatalogSchemaName, Identity, QualifiedObjectName, SchemaTableName, TransactionId
from .parser import read_document

logger = logging.getLogger(__name__)

ACCESS_CONTROL_NAME = "access-control.name"

SystemAccessControlFactory = Callable[[Mapping[str, str]], SystemAccessControl]


class AccessControlManager:
    def __init__(self):
        self._lock = threading.Lock()
        self._factories: Dict[str, SystemAccessControlFactory] = {}
        self._system_access_control: Optional[SystemAccessControl] = None
        self._catalog_access_controls: Dict[str, SystemAccessControl] = {}
        self.add_system_access_control_factory(AllowAllSystemAccessControl.NAME, AllowAllSystemAccessControl.create)
        self.add_system_access_control_factory(FileBasedSystemAccessControl.NAME, FileBasedSystemAccessControl.create)

    # -- registration --

    def add_system_access_control_factory(self, name: str, factory: SystemAccessControlFactory) -> None:
        with self._lock:
            if name in self._factories:
                raise AccessControlConfigError(f"Access control {name!r} is already registered")
            factories = dict(self._factories)
            factories[name] = factory
            self._factories = factories

    def _create(self, name: str, options: Mapping[str, str]) -> SystemAccessControl:
        factory = self._factories.get(name)
        if factory is None:
            raise AccessControlConfigError(
                f"Access control {name!r} is not registered, known: {', '.join(sorted(self._factories))}"
            )
        return factory(dict(options))

    def set_system_access_control(self, name: str, options: Mapping[str, str]) -> SystemAccessControl:
        access_control = self._create(name, options)
        with self._lock:
            self._system_access_control = access_control
        logger.info("Installed system access control %s", name)
        return access_control

    def set_catalog_access_control(self, catalog_name: str, name: str,
                                   options: Mapping[str, str]) -> SystemAccessControl:
        access_control = self._create(name, options)
        with self._lock:
            catalog_access_controls = dict(self._catalog_access_controls)
            catalog_access_controls[catalog_name] = access_control
            self._catalog_access_controls = catalog_access_controls
        logger.info("Installed access control %s for catalog %s", name, catalog_name)
        return access_control

    def load_system_access_control(self, path: Union[str, Path]) -> SystemAccessControl:
        """Install the system access control described by a YAML or JSON file.

        The file is a mapping holding ``access-control.name`` plus the options
        of that access control, e.g.::

            access-control.name: file
            security.config-file: /etc/catalog-acl/rules.json
            security.refresh-period: 30s
        """
        document = read_document(path)
        if not isinstance(document, dict):
            raise AccessControlConfigError(f"Access control configuration {path} must be a mapping")
        options = {str(key): str(value) for key, value in document.items()}
        name = options.pop(ACCESS_CONTROL_NAME, None)
        if not name:
            raise AccessControlConfigError(f"{ACCESS_CONTROL_NAME} is required in {path}")
        return self.set_system_access_control(name, options)

    @property
    def system_access_control(self) -> SystemAccessControl:
        access_control = self._system_access_control
        if access_control is None:
            raise AccessControlConfigError("System access control is not initialized")
        return access_control

    # -- dispatch --

    def _access_controls(self, catalog_name: str) -> List[SystemAccessControl]:
        access_controls = [self.system_access_control]
        catalog_access_control = self._catalog_access_controls.get(catalog_name)
        if catalog_access_control is not None:
            access_controls.append(catalog_access_control)
        return access_controls

    def _check(self, transaction_id: TransactionId, catalog_name: str,
               check: Callable[[SystemAccessControl], None]) -> None:
        for access_control in self._access_controls(catalog_name):
            try:
                check(access_control)
            except AccessDeniedError as e:
                logger.debug("%s (transaction %s)", e, transaction_id)
                raise

    def check_can_set_user(self, identity: Identity) -> None:
        self.system_access_control.check_can_set_user(identity)

    def check_can_access_catalog(self, transaction_id: TransactionId, identity: Identity, catalog_name: str) -> None:
        self._check(transaction_id, catalog_name,
                    lambda ac: ac.check_can_access_catalog(identity, catalog_name))

    def filter_catalogs(self, transaction_id: TransactionId, identity: Identity, catalogs: Set[str]) -> Set[str]:
        allowed = self.system_access_control.filter_catalogs(identity, catalogs)
        catalog_access_controls = self._catalog_access_controls
        return {
            catalog for catalog in allowed
            if catalog not in catalog_access_controls
            or catalog_access_controls[catalog].filter_catalogs(identity, {catalog})
        }

    def check_can_create_schema(self, transaction_id: TransactionId, identity: Identity,
                                schema: CatalogSchemaName) -> None:
        self._check(transaction_id, schema.catalog_name,
                    lambda ac: ac.check_can_create_schema(identity, schema))

    def check_can_drop_schema(self, transaction_id: TransactionId, identity: Identity,
                              schema: CatalogSchemaName) -> None:
        self._check(transaction_id, schema.catalog_name,
                    lambda ac: ac.check_can_drop_schema(identity, schema))

    def check_can_rename_schema(self, transaction_id: TransactionId, identity: Identity,
                                schema: CatalogSchemaName, new_schema_name: str) -> None:
        self._check(transaction_id, schema.catalog_name,
                    lambda ac: ac.check_can_rename_schema(identity, schema, new_schema_name))

    def check_can_show_schemas(self, transaction_id: TransactionId, identity: Identity, catalog_name: str) -> None:
        self._check(transaction_id, catalog_name,
                    lambda ac: ac.check_can_show_schemas(identity, catalog_name))

    def check_can_access_schema(self, transaction_id: TransactionId, identity: Identity,
                                schema: CatalogSchemaName) -> None:
        self._check(transaction_id, schema.catalog_name,
                    lambda ac: ac.check_can_access_schema(identity, schema))

    def filter_schemas(self, transaction_id: TransactionId, identity: Identity, catalog_name: str,
                       schema_names: Set[str]) -> Set[str]:
        allowed = set(schema_names)
        for access_control in self._access_controls(catalog_name):
            allowed = access_control.filter_schemas(identity, catalog_name, allowed)
        return allowed

    def check_can_show_tables(self, transaction_id: TransactionId, identity: Identity,
                              schema: CatalogSchemaName) -> None:
        self._check(transaction_id, schema.catalog_name,
                    lambda ac: ac.check_can_show_tables(identity, schema))

    def check_can_access_table(self, transaction_id: TransactionId, identity: Identity,
                               table: QualifiedObjectName) -> None:
        self._check(transaction_id, table.catalog_name,
                    lambda ac: ac.check_can_access_table(identity, table))

    def filter_tables(self, transaction_id: TransactionId, identity: Identity, catalog_name: str,
                      table_names: Set[SchemaTableName]) -> Set[SchemaTableName]:
        allowed = set(table_names)
        for access_control in self._access_controls(catalog_name):
            allowed = access_control.filter_tables(identity, catalog_name, allowed)
        return allowed

    def check_can_create_table(self, transaction_id: TransactionId, identity: Identity,
                               table: QualifiedObjectName) -> None:
        self._check(transaction_id, table.catalog_name,
                    lambda ac: ac.check_can_create_table(identity, table))

    def check_can_drop_table(self, transaction_id: TransactionId, identity: Identity,
                             table: QualifiedObjectName) -> None:
        self._check(transaction_id, table.catalog_name,
                    lambda ac: ac.check_can_drop_table(identity, table))

    def check_can_rename_table(self, transaction_id: TransactionId, identity: Identity,
                               table: QualifiedObjectName, new_table: QualifiedObjectName) -> None:
        self._check(transaction_id, table.catalog_name,
                    lambda ac: ac.check_can_rename_table(identity, table, new_table))

    def check_can_select_from_table(self, transaction_id: TransactionId, identity: Identity,
                                    table: QualifiedObjectName) -> None:
        self._check(transaction_id, table.catalog_name,
                    lambda ac: ac.check_can_select_from_table(identity, table))

    def check_can_insert_into_table(self, transaction_id: TransactionId, identity: Identity,
                                    table: QualifiedObjectName) -> None:
        self._check(transaction_id, table.catalog_name,
                    lambda ac: ac.check_can_insert_into_table(identity, table))

    def check_can_delete_from_table(self, transaction_id: TransactionId, identity: Identity,
                                    table: QualifiedObjectName) -> None:
        self._check(transaction_id, table.catalog_name,
                    lambda ac: ac.check_can_delete_from_table(identity, table))

    def check_can_add_columns(self, transaction_id: TransactionId, identity: Identity,
                              table: QualifiedObjectName) -> None:
        self._check(transaction_id, table.catalog_name,
                    lambda ac: ac.check_can_add_columns(identity, table))

    def check_can_rename_column(self, transaction_id: TransactionId, identity: Identity,
                                table: QualifiedObjectName) -> None:
        self._check(transaction_id, table.catalog_name,
                    lambda ac: ac.check_can_rename_column(identity, table))

    def check_can_create_view(self, transaction_id: TransactionId, identity: Identity,
                              view: QualifiedObjectName) -> None:
        self._check(transaction_id, view.catalog_name,
                    lambda ac: ac.check_can_create_view(identity, view))

    def check_can_drop_view(self, transaction_id: TransactionId, identity: Identity,
                            view: QualifiedObjectName) -> None:
        self._check(transaction_id, view.catalog_name,
                    lambda ac: ac.check_can_drop_view(identity, view))

    def check_can_select_from_view(self, transaction_id: TransactionId, identity: Identity,
                                   view: QualifiedObjectName) -> None:
        self._check(transaction_id, view.catalog_name,
                    lambda ac: ac.check_can_select_from_view(identity, view))

    def check_can_create_view_with_select_from_table(self, transaction_id: TransactionId, identity: Identity,
                                                     table: QualifiedObjectName) -> None:
        self._check(transaction_id, table.catalog_name,
                    lambda ac: ac.check_can_create_view_with_select_from_table(identity, table))

    def check_can_create_view_with_select_from_view(self, transaction_id: TransactionId, identity: Identity,
                                                    view: QualifiedObjectName) -> None:
        self._check(transaction_id, view.catalog_name,
                    lambda ac: ac.check_can_create_view_with_select_from_view(identity, view))

    def check_can_set_catalog_session_property(self, transaction_id: TransactionId, identity: Identity,
                                               catalog_name: str, property_name: str) -> None:
        self._check(transaction_id, catalog_name,
                    lambda ac: ac.check_can_set_catalog_session_property(identity, catalog_name, property_name))

    def check_can_grant_table_privilege(self, transaction_id: TransactionId, identity: Identity,
                                        privilege: Privilege, table: QualifiedObjectName,
                                        grantee: str, with_grant_option: bool) -> None:
        self._check(transaction_id, table.catalog_name,
                    lambda ac: ac.check_can_grant_table_privilege(
                        identity, privilege, table, grantee, with_grant_option))

    def check_can_revoke_table_privilege(self, transaction_id: TransactionId, identity: Identity,
                                         privilege: Privilege, table: QualifiedObjectName,
                                         revokee: str, grant_option_for: bool) -> None:
        self._check(transaction_id, table.catalog_name,
                    lambda ac: ac.check_can_revoke_table_privilege(
                        identity, privilege, table, revokee, grant_option_for))
