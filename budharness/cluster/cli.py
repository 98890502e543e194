"""Runs the workflow CLI as a subprocess."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from budharness.commons.exceptions import CliError
from budharness.commons.observability import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class CliResult:
    """Combined output of a CLI run and the error, if any."""

    output: str
    error: CliError | None = None

    def __bool__(self) -> bool:
        return self.error is None


class CliRunner:
    """Invokes ``binary -n <namespace> args...``."""

    def __init__(self, binary: str, namespace: str, timeout: float | None = None) -> None:
        self.binary = binary
        self.namespace = namespace
        self.timeout = timeout

    async def run(self, args: list[str]) -> CliResult:
        """Run the CLI; failures are returned in ``CliResult.error``, not raised."""
        argv = [self.binary, "-n", self.namespace, *args]
        logger.info("Running CLI", args=argv)

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            return CliResult(output="", error=CliError(f"Failed to start {self.binary}: {e}"))

        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            stdout, _ = await proc.communicate()
            output = stdout.decode(errors="replace")
            return CliResult(
                output=output,
                error=CliError(f"{self.binary} timed out after {self.timeout}s", output=output),
            )

        output = stdout.decode(errors="replace")
        logger.debug("CLI finished", returncode=proc.returncode, output=output)
        if proc.returncode != 0:
            return CliResult(
                output=output,
                error=CliError(
                    f"{self.binary} exited with status {proc.returncode}",
                    returncode=proc.returncode,
                    output=output,
                ),
            )
        return CliResult(output=output)
