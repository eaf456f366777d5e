"""Content repair for projen upgrade branches: pure rewrite rules and their branch IO."""

from .branch import FileRepair, RepairStatus, repair_pr_branch
from .rules import (
    bump_pnpm_setup_version,
    remove_deprecated_pnpm_options,
    remove_unused_import,
    tidy_blank_lines,
)

__all__ = [
    "FileRepair",
    "RepairStatus",
    "bump_pnpm_setup_version",
    "remove_deprecated_pnpm_options",
    "remove_unused_import",
    "repair_pr_branch",
    "tidy_blank_lines",
]
