"""Pytest configuration and fixtures for medialedger tests."""

import pytest
import structlog
from fakes import FakeAccessor

from medialedger.core.schemas import TitleRecord


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo CLI logging configuration bound to a test runner's stderr."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def hd_accessor() -> FakeAccessor:
    """1080p H264 file with a 5.1 DTS-HD MA English track."""
    return FakeAccessor(
        {
            "General": [{"CodecID": ""}],
            "Video": [{"Width": "1920", "Height": "1080", "Format": "AVC"}],
            "Audio": [
                {
                    "Format_Commercial_IfAny": "DTS-HD Master Audio",
                    "Format": "DTS",
                    "Channels": "6",
                    "Language": "en",
                }
            ],
        }
    )


@pytest.fixture
def matrix_record() -> TitleRecord:
    return TitleRecord(
        id=603,
        name="The Matrix",
        release_date="1999-03-30",
        description="A hacker learns the truth.",
    )


@pytest.fixture
def show_record() -> TitleRecord:
    return TitleRecord(id=1399, name="Show Name", release_date="2011-04-17")
