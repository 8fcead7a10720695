import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'statebinding' and tests/ importable for helpers
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from helpers.cache_utils import reset_statebinding_caches
from helpers.machines import Workflow, make_definition


@pytest.fixture(autouse=True)
def _reset_global_caches(monkeypatch) -> None:
    """Ensure default providers and conventions are fresh for each test."""
    # A developer shell override would silently change every default lookup.
    monkeypatch.delenv("STATEBINDING_CONVENTIONS", raising=False)
    reset_statebinding_caches()
    yield
    reset_statebinding_caches()


@pytest.fixture
def definition():
    return make_definition()


@pytest.fixture
def provider(definition):
    from statebinding.core.binding import BindingProvider

    return BindingProvider(definition, Workflow)


@pytest.fixture
def write_yaml(tmp_path):
    """Write a mapping as YAML under tmp_path and return the path."""
    import yaml

    def _write(name, data):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write
