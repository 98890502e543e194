"""Tests for the CLI runner."""

import shutil

import pytest

from budharness.cluster.cli import CliResult, CliRunner
from budharness.commons.exceptions import CliError


requires_coreutils = pytest.mark.skipif(
    shutil.which("echo") is None or shutil.which("false") is None,
    reason="coreutils not available",
)


class TestCliRunner:
    """Tests for CliRunner.run."""

    @requires_coreutils
    @pytest.mark.asyncio
    async def test_successful_run(self) -> None:
        """Test that output is captured and no error is reported."""
        # echo treats the namespace flag as "no trailing newline".
        result = await CliRunner("echo", "argo", timeout=10).run(["version"])

        assert result
        assert result.error is None
        assert result.output == "argo version"

    @requires_coreutils
    @pytest.mark.asyncio
    async def test_non_zero_exit_is_returned(self) -> None:
        """Test that a non-zero exit is reported as an error value."""
        result = await CliRunner("false", "argo", timeout=10).run(["get", "missing"])

        assert not result
        assert isinstance(result.error, CliError)
        assert result.error.returncode == 1

    @pytest.mark.asyncio
    async def test_missing_binary_is_returned(self) -> None:
        """Test that a binary that cannot be started is reported, not raised."""
        result = await CliRunner("/nonexistent/argo", "argo").run(["version"])

        assert result.output == ""
        assert isinstance(result.error, CliError)
        assert "/nonexistent/argo" in str(result.error)


class TestCliResult:
    """Tests for CliResult."""

    def test_truthiness(self) -> None:
        """Test that a result is truthy only without an error."""
        assert CliResult(output="ok")
        assert not CliResult(output="", error=CliError("boom"))
