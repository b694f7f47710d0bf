import pytest

from tests.plex_helpers import RequestLog


@pytest.fixture
def request_log() -> RequestLog:
    return RequestLog()


@pytest.fixture
def dvrs_payload() -> dict:
    return {
        "MediaContainer": {
            "size": 2,
            "Dvr": [
                {
                    "key": "11",
                    "uuid": "dvr-a",
                    "Device": [{"key": "101", "make": "Silicondust"}, {"key": "102"}],
                },
                {"key": "12", "uuid": "dvr-b", "Device": [{"key": "201"}]},
            ],
        }
    }
