import pytest

from reactive_context import Diagnostics, set_diagnostics


class RecordingDiagnostics(Diagnostics):
    """Sink that keeps what it was told, for deterministic assertions."""

    def __init__(self):
        self.reassignments = []
        self.errors = []

    def reassignment(self, namespace, key, old_value):
        self.reassignments.append((namespace, key, old_value))

    def listener_error(self, event, exc):
        self.errors.append((event, exc))


@pytest.fixture
def sink():
    return RecordingDiagnostics()


@pytest.fixture(autouse=True)
def _restore_default_diagnostics():
    yield
    set_diagnostics(None)
