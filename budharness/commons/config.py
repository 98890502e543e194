"""Harness configuration management.

Provides configurable timeouts and cluster settings for scenarios.
All values can be overridden via environment variables or a ``.env`` file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from budharness.commons.constants import DEFAULT_NAMESPACE


load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class TimeoutConfig:
    """Timeout configuration for waits and remote calls (seconds)."""

    workflow_start: float = 60
    workflow_finish: float = 120
    api_request: float = 30
    cli: float = 60

    @classmethod
    def from_env(cls) -> TimeoutConfig:
        """Create config from environment variables."""
        config = cls()

        env_mappings = {
            "E2E_TIMEOUT_WORKFLOW_START": "workflow_start",
            "E2E_TIMEOUT_WORKFLOW_FINISH": "workflow_finish",
            "E2E_TIMEOUT_API_REQUEST": "api_request",
            "E2E_TIMEOUT_CLI": "cli",
        }

        for env_var, attr in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                try:
                    setattr(config, attr, float(value))
                except ValueError:
                    pass  # Keep default if invalid

        return config


@dataclass
class HarnessConfig:
    """Main harness configuration."""

    # Cluster access
    namespace: str = DEFAULT_NAMESPACE
    kubeconfig: str | None = None
    kube_context: str | None = None

    # Argo CLI used by run_cli steps
    cli_binary: str = "../../dist/argo"

    # Offloaded node status store
    cluster_name: str = "default"
    offload_dsn: str | None = None

    # Logging
    debug: bool = False
    log_level: str = "INFO"

    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)

    @classmethod
    def from_env(cls) -> HarnessConfig:
        """Create config from environment variables."""
        return cls(
            namespace=os.getenv("E2E_NAMESPACE", DEFAULT_NAMESPACE),
            kubeconfig=os.getenv("E2E_KUBECONFIG") or os.getenv("KUBECONFIG"),
            kube_context=os.getenv("E2E_KUBE_CONTEXT"),
            cli_binary=os.getenv("E2E_CLI_BINARY", "../../dist/argo"),
            cluster_name=os.getenv("E2E_CLUSTER_NAME", "default"),
            offload_dsn=os.getenv("E2E_OFFLOAD_DSN"),
            debug=_env_flag("E2E_DEBUG"),
            log_level=os.getenv("E2E_LOG_LEVEL", "INFO").upper(),
            timeouts=TimeoutConfig.from_env(),
        )


# Global config instance (lazy loaded)
_config: HarnessConfig | None = None


def get_config() -> HarnessConfig:
    """Get the global harness configuration."""
    global _config
    if _config is None:
        _config = HarnessConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    _config = None
