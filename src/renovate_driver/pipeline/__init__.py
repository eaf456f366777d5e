"""Per-repository PR decision pipeline."""

from .driver import Outcome, process_repositories, process_repository

__all__ = [
    "Outcome",
    "process_repositories",
    "process_repository",
]
