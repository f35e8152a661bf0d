# tests/conftest.py
"""
Pytest configuration and fixtures.
Adds src/ to sys.path so `import coderabbit_reports` works without installing.
"""

import logging
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
src_root = project_root / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

# Also add project root so shared doubles import as `tests.fakes`
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture(autouse=True)
def _drop_configured_log_handlers():
    # configure_logging binds handlers to the current sys.stderr, which capsys swaps per test
    yield
    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, "_coderabbit_reports_handler", False)]:
        root.removeHandler(handler)
        handler.close()
