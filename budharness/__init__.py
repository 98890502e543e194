"""E2E harness for driving Argo workflow resources through given/when/then scenarios."""

from budharness.__about__ import __version__


__all__ = ["__version__"]
