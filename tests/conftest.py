from __future__ import annotations

import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from fixtures import ChartBuilder  # noqa: E402

# Ensure src/ is importable without an editable install
ROOT = TESTS_DIR.parent
SRC = str(ROOT / "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)


@pytest.fixture
def charts(tmp_path: Path) -> ChartBuilder:
    """Provide a chart tree builder bound to pytest's tmp directory."""

    return ChartBuilder(tmp_path / "charts")
