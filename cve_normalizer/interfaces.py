"""
Interfaces for pluggable collaborators.
"""

from __future__ import annotations

from typing import Mapping, Protocol
from urllib.parse import SplitResult


class Unbinder(Protocol):
    """Decompose a formatted CPE string into well-formed name attributes."""

    def __call__(self, formatted: str) -> Mapping[str, str]:
        ...


class URLPredicate(Protocol):
    """Decide whether a repository rule applies to a parsed URL."""

    def __call__(self, parsed: SplitResult) -> bool:
        ...


class URLBuilder(Protocol):
    """Build the base repository URL for a parsed URL."""

    def __call__(self, parsed: SplitResult) -> str:
        ...
