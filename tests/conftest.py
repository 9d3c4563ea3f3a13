"""
Shared test fixtures and configuration for templatev tests.
"""
import pytest
from pathlib import Path

from templatev.parser import create_environment


@pytest.fixture
def temp_home(monkeypatch, tmp_path):
    """Create a temporary home directory for testing."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("TEMPLATEV_CONFIG", raising=False)
    monkeypatch.setattr(Path, "home", lambda: home)
    yield home


@pytest.fixture
def strict_environment():
    """Environment that raises on unbound names."""
    return create_environment(undefined="strict")


@pytest.fixture
def sample_template():
    """Multi-line config template with nested references."""
    return """[server]
host = ${server.host}
port = ${server.port}
name = ${name}

[users]
{% for user in users %}admin = ${user}
{% endfor %}"""


@pytest.fixture
def template_file(tmp_path):
    """Write a template to disk and return its path."""
    def _write(content, name="app.conf.tmpl"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path
    return _write
