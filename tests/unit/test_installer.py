"""
Tests for the Plugin Dependency Installer.

This test suite covers:
1. Plugins without requirements
2. Command construction and environment
3. Exit code handling
4. Spawn failures
"""

import asyncio
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from scaffolder.errors import InstallFailed, SpawnError
from scaffolder.plugin.installer import install_command, install_dependencies


class TestInstallCommand:
    """Test install command construction."""

    def test_install_command_targets_plugin(self, tmp_path):
        """Should install into the plugin's dependency directory."""
        command = install_command(tmp_path)

        assert command[:4] == [sys.executable, "-m", "pip", "install"]
        assert command[command.index("--target") + 1] == str(tmp_path / ".site-packages")
        assert command[-2:] == ["-r", "requirements.txt"]


class TestInstallDependencies:
    """Test running the install command."""

    @pytest.mark.asyncio
    async def test_no_requirements_spawns_nothing(self, tmp_path):
        """Should return 0 without starting a process."""
        with patch("asyncio.create_subprocess_exec") as mock_exec:
            assert await install_dependencies(tmp_path) == 0

        mock_exec.assert_not_called()

    @pytest.mark.asyncio
    async def test_install_runs_in_plugin_dir(self, tmp_path):
        """Should run pip in the plugin directory with discarded output."""
        (tmp_path / "requirements.txt").write_text("requests\n")
        process = MagicMock()
        process.wait = AsyncMock(return_value=0)

        with patch("asyncio.create_subprocess_exec", return_value=process) as mock_exec:
            assert await install_dependencies(tmp_path) == 0

        args, kwargs = mock_exec.call_args
        assert list(args) == install_command(tmp_path)
        assert kwargs["cwd"] == tmp_path
        assert kwargs["stdout"] == asyncio.subprocess.DEVNULL
        assert kwargs["stderr"] == asyncio.subprocess.DEVNULL
        assert kwargs["env"]["SCAFFOLDER_PLUGIN_DIR"] == str(tmp_path)

    @pytest.mark.asyncio
    async def test_verbose_inherits_output(self, tmp_path):
        """Should inherit the output streams in verbose mode."""
        (tmp_path / "requirements.txt").write_text("requests\n")
        process = MagicMock()
        process.wait = AsyncMock(return_value=0)

        with patch("asyncio.create_subprocess_exec", return_value=process) as mock_exec:
            await install_dependencies(tmp_path, verbose=True)

        kwargs = mock_exec.call_args.kwargs
        assert kwargs["stdout"] is None
        assert kwargs["stderr"] is None

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises(self, tmp_path):
        """Should raise InstallFailed with the exit code."""
        with pytest.raises(InstallFailed) as excinfo:
            await install_dependencies(
                tmp_path, command=[sys.executable, "-c", "import sys; sys.exit(3)"]
            )

        assert excinfo.value.exit_code == 3
        assert not isinstance(excinfo.value, SpawnError)

    @pytest.mark.asyncio
    async def test_successful_command(self, tmp_path):
        """Should return 0 when the command succeeds."""
        code = await install_dependencies(tmp_path, command=[sys.executable, "-c", "pass"])

        assert code == 0

    @pytest.mark.asyncio
    async def test_missing_executable_raises_spawn_error(self, tmp_path):
        """Should raise SpawnError when the command cannot be started."""
        with pytest.raises(SpawnError, match="Failed to start"):
            await install_dependencies(
                tmp_path, command=[str(tmp_path / "no-such-installer")]
            )
