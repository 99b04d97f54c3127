"""
Shared pytest fixtures for the visualization tests.
"""

import pytest

from services.visualization.exporter import ChartExporter
from services.visualization.session import VisualizationSession


class FakeHandle:
    """Chart handle that counts how often it is destroyed"""

    def __init__(self):
        self.destroy_calls = 0

    def destroy(self):
        self.destroy_calls += 1


class RecordingConversation:
    def __init__(self):
        self.sent = []

    def send_message(self, query):
        self.sent.append(query)


@pytest.fixture
def people():
    return [
        {"id": "p1", "name": "Alice Chen", "title": "VP Engineering", "department": "Engineering",
         "managerId": None, "isManager": True, "meetingCount": 12},
        {"id": "p2", "name": "Bob Diaz", "title": "Engineering Manager", "department": "Engineering",
         "managerId": "p1", "isManager": True, "meetingCount": 8},
        {"id": "p3", "name": "Carol Evans", "title": "Engineer", "department": "Engineering",
         "managerId": "p2", "meetingCount": 5},
        {"id": "p4", "name": "Dan Fox", "title": "Designer", "department": "Design",
         "managerId": "p1", "meetingCount": 3},
    ]


@pytest.fixture
def meetings():
    return [
        {"id": "m1", "title": "Kickoff", "startTime": "2024-01-01T09:00:00Z",
         "participants": [{"name": "Alice Chen"}, {"name": "Bob Diaz"}]},
        {"id": "m2", "title": "Design review", "startTime": "2024-01-03T14:00:00Z",
         "participants": [{"name": "Alice Chen"}, {"name": "Bob Diaz"}, {"name": "Dan Fox"}]},
        {"id": "m3", "title": "Planning", "startTime": "2024-01-10T10:00:00Z",
         "participants": [{"name": "Bob Diaz"}, {"name": "Carol Evans"}]},
        {"id": "m4", "title": "Retro", "startTime": "2024-02-02T16:00:00Z",
         "participants": ["Alice Chen", "Carol Evans"]},
    ]


@pytest.fixture
def session(tmp_path):
    return VisualizationSession(session_id="test-session", exporter=ChartExporter(str(tmp_path)))


@pytest.fixture
def fake_handle():
    return FakeHandle()


@pytest.fixture
def handle_factory():
    return FakeHandle


@pytest.fixture
def conversation():
    return RecordingConversation()
