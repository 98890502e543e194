"""Custom exceptions for the harness.

Every exception here is fatal for the scenario that raised it; nothing is
retried.
"""

from __future__ import annotations

from typing import Any


class HarnessException(Exception):
    """Base exception for all harness errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class PreconditionError(HarnessException):
    """A chain operation was used without the state it needs."""

    pass


class ResourceOperationError(HarnessException):
    """A create/get/list/delete/watch call against the cluster failed."""

    def __init__(
        self,
        message: str,
        kind: str | None = None,
        name: str | None = None,
        status: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.kind = kind
        self.name = name
        self.status = status
        if kind:
            self.details["kind"] = kind
        if name:
            self.details["name"] = name
        if status is not None:
            self.details["status"] = status


class ResourceNotFoundError(ResourceOperationError):
    """The requested object does not exist."""

    def __init__(self, kind: str, name: str | None = None, **kwargs: Any) -> None:
        msg = f"{kind} not found"
        if name:
            msg = f"{kind} {name} not found"
        super().__init__(msg, kind=kind, name=name, status=404, **kwargs)


class UnexpectedObjectError(HarnessException):
    """A watch event carried something other than the expected resource."""

    def __init__(self, expected: str, received: Any, event_type: str | None = None) -> None:
        received_kind = received.get("kind") if isinstance(received, dict) else type(received).__name__
        details: dict[str, Any] = {"expected": expected, "received": received_kind}
        if event_type:
            details["event_type"] = event_type
        if isinstance(received, dict) and received.get("message"):
            details["message"] = received["message"]
        super().__init__(
            f"Unexpected object in watch stream: expected {expected}, got {received_kind}",
            details=details,
        )
        self.expected = expected
        self.received = received


class WatchClosedError(HarnessException):
    """The watch stream ended before the condition was met."""

    def __init__(self, description: str, workflow_name: str | None = None) -> None:
        details: dict[str, Any] = {"condition": description}
        if workflow_name:
            details["workflow"] = workflow_name
        super().__init__(
            f"Watch closed while waiting for condition {description}",
            details=details,
        )
        self.description = description
        self.workflow_name = workflow_name


class ConditionTimeoutError(HarnessException):
    """A condition was not met within its timeout."""

    def __init__(
        self,
        description: str,
        timeout_seconds: float,
        elapsed_seconds: float,
        workflow_name: str | None = None,
    ) -> None:
        details: dict[str, Any] = {
            "timeout_seconds": timeout_seconds,
            "elapsed_seconds": round(elapsed_seconds, 3),
        }
        if workflow_name:
            details["workflow"] = workflow_name
        super().__init__(
            f"timeout after {timeout_seconds}s waiting for condition {description}",
            details=details,
        )
        self.description = description
        self.timeout_seconds = timeout_seconds
        self.elapsed_seconds = elapsed_seconds
        self.workflow_name = workflow_name


class HydrationError(HarnessException):
    """Expanding a workflow's offloaded or compressed node status failed."""

    def __init__(self, message: str, workflow_name: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.workflow_name = workflow_name
        if workflow_name:
            self.details["workflow"] = workflow_name


class CliError(HarnessException):
    """The CLI process could not be started or exited non-zero."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        output: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.returncode = returncode
        self.output = output
        if returncode is not None:
            self.details["returncode"] = returncode


class ScenarioFailedError(HarnessException):
    """A scenario step failed; no later steps were run."""

    def __init__(self, step: str, cause: BaseException, results: list[Any] | None = None) -> None:
        super().__init__(
            f"Step '{step}' failed: {cause}",
            details={"step": step, "error_type": type(cause).__name__},
        )
        self.step = step
        self.cause = cause
        self.results = results or []
