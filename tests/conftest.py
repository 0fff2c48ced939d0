import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PIL import Image
from PySide6.QtWidgets import QApplication

from framereel.core.store import ProjectStore
from framereel.core.timeline import TimelineModel

_app = None


@pytest.fixture(scope="session")
def qapp():
    global _app
    if _app is None:
        _app = QApplication.instance() or QApplication([])
    return _app


@pytest.fixture
def store(tmp_path):
    s = ProjectStore.open(tmp_path / "project.db")
    yield s
    s.close()


@pytest.fixture
def timeline(store):
    return TimelineModel(store)


def write_image(path, color=(255, 0, 0, 255), size=(4, 4)):
    """Write a solid-colour RGBA PNG (creating parent dirs)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path)
    return path


@pytest.fixture
def image_factory():
    return write_image
