"""
Pytest configuration and shared fixtures.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock


MANIFEST_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<plist version="1.0"><dict><key>items</key><array/></dict></plist>\n'
)


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def mock_env(monkeypatch, tmp_path):
    """Set up test environment variables."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PORT", "4000")
    monkeypatch.setenv("EAS_COMMAND", "npx eas-cli")
    for name in (
        "HOST", "PUBLIC_DIR", "PROJECT_DIR", "BUILD_PLATFORM", "BUILD_PROFILE",
        "REGISTER_TIMEOUT", "BUILD_TIMEOUT", "MAX_OUTPUT_BYTES", "BUILD_RECORD_TTL", "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def public_dir(tmp_path):
    """Create a public directory with a manifest and install page."""
    directory = tmp_path / "project" / "public"
    directory.mkdir(parents=True)
    (directory / "manifest.plist").write_text(MANIFEST_XML, encoding="utf-8")
    (directory / "install.html").write_text("<html>install</html>", encoding="utf-8")
    (directory / "app.plist").write_text(MANIFEST_XML, encoding="utf-8")
    (directory / "readme.txt").write_text("hello", encoding="utf-8")
    return directory


@pytest.fixture
def test_settings(public_dir):
    """Settings pointing at the temporary public directory."""
    from enroll_gateway.core.config import Settings

    return Settings(public_dir=public_dir)


# ============================================================================
# Mock Fixtures
# ============================================================================

@pytest.fixture
def mock_runner():
    """Create a mock SubprocessRunner that succeeds with empty output."""
    from enroll_gateway.services.runner import ToolOutput

    runner = MagicMock()
    runner.run = AsyncMock(return_value=ToolOutput(stdout="", stderr=""))
    return runner


@pytest.fixture
def eas_cli(mock_runner):
    """Create an EasCli backed by the mock runner."""
    from enroll_gateway.services.eas import EasCli

    return EasCli(mock_runner, command=["eas"], register_timeout=30, build_timeout=60)


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def devices():
    """Create an empty DevicesStore."""
    from enroll_gateway.state.devices import DevicesStore

    return DevicesStore()


@pytest.fixture
def registry(eas_cli, devices):
    """Create a DeviceRegistry with empty state."""
    from enroll_gateway.services.registry import DeviceRegistry

    return DeviceRegistry(eas_cli, devices)


@pytest.fixture
def orchestrator(eas_cli):
    """Create a BuildOrchestrator with empty state."""
    from enroll_gateway.services.builds import BuildOrchestrator
    from enroll_gateway.state.builds import BuildsStore

    return BuildOrchestrator(eas_cli, BuildsStore())


@pytest.fixture
def web_app(test_settings, eas_cli):
    """Create the aiohttp application wired to the mock runner."""
    from enroll_gateway.web.server import create_web_app

    return create_web_app(test_settings, cli=eas_cli)
