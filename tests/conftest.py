import os
import sys
from collections import defaultdict

import pytest

# Ensure the project root (containing the `roomrelay` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from roomrelay import create_app, socketio
from roomrelay.lifecycle import ConnectionLifecycle
from roomrelay.relay import BroadcastRelay
from roomrelay.rooms import RoomRegistry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['*']
    SOCKETIO_NAMESPACE = '/'
    DEFAULT_ROOM_KIND = 'custom'
    LOG_LEVEL = 'DEBUG'


class RecordingTransport:
    """In-memory transport that keeps an inbox per connection."""

    def __init__(self):
        self.connections = set()
        self.groups = defaultdict(set)
        self.inbox = defaultdict(list)

    def open(self, conn_id):
        self.connections.add(conn_id)

    def close(self, conn_id):
        self.connections.discard(conn_id)
        for members in self.groups.values():
            members.discard(conn_id)

    def send(self, conn_id, event, data):
        self.inbox[conn_id].append((event, data))

    def broadcast(self, group, event, data, skip=None):
        for member in sorted(self.groups.get(group, ())):
            if member != skip:
                self.inbox[member].append((event, data))

    def broadcast_all(self, event, data):
        for conn_id in sorted(self.connections):
            self.inbox[conn_id].append((event, data))

    def enter_group(self, conn_id, group):
        self.groups[group].add(conn_id)

    def leave_group(self, conn_id, group):
        self.groups[group].discard(conn_id)

    def events(self, conn_id):
        return [event for event, _ in self.inbox[conn_id]]

    def last(self, conn_id, event):
        for name, data in reversed(self.inbox[conn_id]):
            if name == event:
                return data
        return None

    def clear(self):
        self.inbox.clear()


@pytest.fixture()
def registry():
    return RoomRegistry()


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def lifecycle(registry, transport):
    return ConnectionLifecycle(registry, BroadcastRelay(registry, transport))


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/'
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected('/'):
                test_client.disconnect(namespace='/')
        except Exception:
            pass


@pytest.fixture()
def sio_client(sio_factory):
    return sio_factory()
