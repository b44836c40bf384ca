from pathlib import Path
import pytest
from catalog_acl.file_based import FileBasedSystemAccessControl
from catalog_acl.manager import AccessControlManager

RESOURCES = Path(__file__).parent / "resources"


@pytest.fixture
def rules_path():
    return RESOURCES / "catalog.json"


@pytest.fixture
def access_control(rules_path):
    return FileBasedSystemAccessControl.create({"security.config-file": str(rules_path)})


@pytest.fixture
def manager(rules_path):
    acm = AccessControlManager()
    acm.set_system_access_control(FileBasedSystemAccessControl.NAME, {"security.config-file": str(rules_path)})
    return acm
