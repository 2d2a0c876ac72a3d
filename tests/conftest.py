"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local docplane package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of docplane modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("docplane"):
        del sys.modules[module_name]


@pytest.fixture
def registry():
    """The built-in language registry."""
    from docplane.core.languages import LanguageRegistry

    return LanguageRegistry()


@pytest.fixture(autouse=True)
def _isolated_global_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep tests from reading the developer's ~/.config/docplane/config.yaml."""
    from docplane.config import loader

    missing = tmp_path_factory.mktemp("global-config") / "config.yaml"
    monkeypatch.setattr(loader, "GLOBAL_CONFIG_PATH", missing)
