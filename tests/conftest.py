"""
Shared pytest fixtures for the freqy tests.
"""
import sys
from pathlib import Path

import pytest

# Ensure the workspace modules win for imports when run without installing.
_REPO_ROOT = Path(__file__).resolve().parent.parent
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


@pytest.fixture
def write_text(tmp_path):
    """Writes `text` to tmp_path/name (UTF-8) and returns the path as a string."""
    def _write(name: str, text: str) -> str:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write
