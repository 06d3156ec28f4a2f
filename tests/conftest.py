"""
Shared test fixtures and helpers for the depinject test suite.
"""

import importlib
import sys

import pytest

from depinject.diagnostics import DIDiagnostics
from depinject.testing import MockFactory


class RecordingListener:
    """Diagnostic listener that keeps every event."""

    def __init__(self):
        self.events = []

    def on_event(self, event):
        self.events.append(event)

    def types(self):
        return [event.type for event in self.events]


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def diagnostics(listener):
    diag = DIDiagnostics()
    diag.add_listener(listener)
    return diag


@pytest.fixture
def app_factories():
    """Small layered registry: config <- db <- repo."""
    return {
        "config": MockFactory({"dsn": "sqlite://"}),
        "db": lambda config: ("db", config["dsn"]),
        "repo": lambda db, config: ("repo", db, config),
    }


SERVICES_MODULE = "cli_services"

SERVICES_SOURCE = '''
from depinject import eager


def make_db():
    return "db"


REGISTRY = {
    "db": eager(make_db),
    "repo": lambda db: f"repo({db})",
}

BROKEN = {
    "a": lambda missing: missing,
    "b": lambda c: c,
    "c": lambda b: b,
}

NOT_A_MAPPING = 42
'''


@pytest.fixture
def services_module(tmp_path, monkeypatch):
    """Importable module holding registries for CLI tests."""
    (tmp_path / f"{SERVICES_MODULE}.py").write_text(SERVICES_SOURCE)
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, SERVICES_MODULE, raising=False)
    importlib.invalidate_caches()
    yield SERVICES_MODULE
    sys.modules.pop(SERVICES_MODULE, None)
