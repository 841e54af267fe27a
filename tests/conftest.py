"""Pytest configuration for form conversation tests."""

import sys
from pathlib import Path

import pytest

# Ensure project root is on PYTHONPATH
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


_DIRECTORY_MARKERS = {
    "unit": "unit",
    "flow": "flow",
    "test_api": "api",
}


def pytest_collection_modifyitems(items):
    """Auto-mark tests by the directory they live in (unit / flow / api)."""
    for item in items:
        parts = Path(str(item.fspath)).parts
        for directory, marker in _DIRECTORY_MARKERS.items():
            if directory in parts and marker not in [m.name for m in item.iter_markers()]:
                item.add_marker(getattr(pytest.mark, marker))
