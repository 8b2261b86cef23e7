"""Shared test fixtures for Claude Stats Exporter."""

import os
import sys
from pathlib import Path

import pytest


@pytest.fixture(scope="session")
def qapp():
    """Create a QCoreApplication for tests that need Qt."""
    os.environ["QT_QPA_PLATFORM"] = "offscreen"
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(sys.argv or ["test"])
    yield app


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Create a temporary Claude data directory with an empty projects dir."""
    root = tmp_path / ".claude"
    (root / "projects").mkdir(parents=True)
    return root


@pytest.fixture
def project_dir(data_dir) -> Path:
    project = data_dir / "projects" / "-home-wiz-projects-myapp"
    project.mkdir()
    return project
