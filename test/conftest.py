from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from test.fixtures.fakes import FakeClock, FakeRenderTarget, ManualScheduler


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def clock(scheduler: ManualScheduler) -> FakeClock:
    return FakeClock(scheduler=scheduler)


@pytest.fixture
def targets() -> dict:
    return {idx: FakeRenderTarget() for idx in range(6)}


@pytest.fixture(scope="session")
def qapp():
    """Offscreen QApplication for tests that touch Qt objects or widgets."""
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    QtWidgets = pytest.importorskip("PySide6.QtWidgets")
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    return app
