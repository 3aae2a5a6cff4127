import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add src to Python path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from account.account_model import UserSession
from fakes import FakeFirestore, FakeStorageManager


@pytest.fixture
def session():
    return UserSession(user_id="user-123", email="eagle@bc.edu")


@pytest.fixture
def other_session():
    return UserSession(user_id="user-999", email="someone@bc.edu")


@pytest.fixture
def firestore():
    return FakeFirestore()


@pytest.fixture
def storage():
    return FakeStorageManager()


def make_image(color=(200, 30, 30), mode='RGB', size=(8, 8)) -> Image.Image:
    return Image.new(mode, size, color)


def image_bytes(fmt='PNG') -> bytes:
    buffer = io.BytesIO()
    make_image().save(buffer, format=fmt)
    return buffer.getvalue()
