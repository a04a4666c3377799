"""
Tests for device registration.
"""

import asyncio

import pytest


class TestDeviceRegistry:
    """Tests for DeviceRegistry class."""

    @pytest.mark.asyncio
    async def test_register_new_device(self, registry, devices, mock_runner):
        """Test a new device is registered through the CLI."""
        from enroll_gateway.services.runner import ToolOutput

        mock_runner.run.return_value = ToolOutput(stdout="Device registered successfully", stderr="")

        result = await registry.register("ABCD1234", "Test Phone")

        assert result.udid == "ABCD1234"
        assert result.already_registered is False
        assert result.output == "Device registered successfully"
        assert "ABCD1234" in devices
        args = mock_runner.run.call_args[0][0]
        assert args[args.index("--name") + 1] == "Test Phone"

    @pytest.mark.asyncio
    async def test_default_name_from_udid(self, registry, mock_runner):
        """Test the display name falls back to the last 8 udid characters."""
        await registry.register("00008030-001A2B3C4D5E6F70")

        args = mock_runner.run.call_args[0][0]
        assert args[args.index("--name") + 1] == "iPhone-4D5E6F70"

    @pytest.mark.asyncio
    async def test_second_call_skips_cli(self, registry, mock_runner):
        """Test repeated registration never invokes the CLI again."""
        first = await registry.register("ABCD1234")
        second = await registry.register("ABCD1234")

        assert first.already_registered is False
        assert second.already_registered is True
        assert mock_runner.run.await_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("udid", [None, ""])
    async def test_missing_udid(self, registry, mock_runner, udid):
        """Test missing udid raises ValidationError without CLI call."""
        from enroll_gateway.core.exceptions import ValidationError

        with pytest.raises(ValidationError):
            await registry.register(udid)

        mock_runner.run.assert_not_called()

    @pytest.mark.asyncio
    async def test_cli_already_registered_is_success(self, registry, devices, mock_runner):
        """Test the CLI's own 'already registered' failure counts as success."""
        from enroll_gateway.core.exceptions import ToolExecutionError

        mock_runner.run.side_effect = ToolExecutionError(
            "Command failed (exit 1): eas device:create\nThis device is already registered",
            exit_code=1,
            stderr="This device is already registered",
        )

        result = await registry.register("ABCD1234")

        assert result.already_registered is True
        assert "ABCD1234" in devices

    @pytest.mark.asyncio
    async def test_cli_failure_propagates(self, registry, devices, mock_runner):
        """Test other CLI failures propagate and leave the device unregistered."""
        from enroll_gateway.core.exceptions import ToolExecutionError

        mock_runner.run.side_effect = ToolExecutionError(
            "Command failed (exit 1)", exit_code=1, stderr="Not logged in"
        )

        with pytest.raises(ToolExecutionError):
            await registry.register("ABCD1234")

        assert "ABCD1234" not in devices

    @pytest.mark.asyncio
    async def test_timeout_commits_nothing(self, registry, devices, mock_runner):
        """Test a timed out registration leaves no membership behind."""
        from enroll_gateway.core.exceptions import ToolTimeoutError

        mock_runner.run.side_effect = ToolTimeoutError("Command timed out after 30s", timeout=30)

        with pytest.raises(ToolTimeoutError):
            await registry.register("ABCD1234")

        assert "ABCD1234" not in devices

    @pytest.mark.asyncio
    async def test_concurrent_registrations_share_one_call(self, registry, mock_runner):
        """Test concurrent registrations of one device run the CLI once."""
        from enroll_gateway.services.runner import ToolOutput

        async def slow_run(*args, **kwargs):
            await asyncio.sleep(0.05)
            return ToolOutput(stdout="ok", stderr="")

        mock_runner.run.side_effect = slow_run

        first, second = await asyncio.gather(
            registry.register("ABCD1234"),
            registry.register("ABCD1234"),
        )

        assert mock_runner.run.await_count == 1
        assert first.already_registered is False
        assert second.already_registered is True
