"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local cargoscope package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of cargoscope modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("cargoscope"):
        del sys.modules[module_name]

from cargoscope.toolchain.paths import clear_executable_path_cache  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_executable_cache() -> None:
    """Resolved executable paths must not leak between tests."""
    clear_executable_path_cache()
