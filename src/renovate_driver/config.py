"""Run configuration: the variant selector and the fleet-wide settings.

The variant selector (``--major-version``) is resolved once into a TitlePattern that
carries everything the later stages branch on: the expected PR title, whether merged
PRs must be recent, and which workflow produces the PR.

Settings YAML format (all keys optional):
- opt_out_topic: repository topic that excludes a repository from any processing
- merge: false for validate-only runs
- auto_merge: try GitHub auto-merge before a direct squash merge
- rerun_throttle_minutes: minimum age of the latest workflow run before a rerun
- expected_pnpm_version: pnpmVersion pin that is removed without a warning
- pnpm_setup_old_version / pnpm_setup_new_version: pnpm/action-setup version rewrite
- projenrc_path: projen config file repaired on projen upgrade branches
- workflow_files: workflow definitions whose pnpm/action-setup version is rewritten
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from renovate_driver.errors import ConfigurationError

DEFAULT_LIBRARY = "@time-loop/cdk-library"
DEFAULT_MAX_AGE_DAYS = 7

ALL_NON_MAJOR_TITLE = "fix(deps): update all non-major dependencies"
PROJEN_UPGRADE_TITLE = "fix(deps): upgrade projen"

RENOVATE_WORKFLOW = "renovate"
PROJEN_UPGRADE_WORKFLOW = "update-projen-main"


class Variant(Enum):
    LIBRARY = "library"
    ALL_NON_MAJOR = "all"
    PROJEN = "projen"


@dataclass(frozen=True)
class TitlePattern:
    """Everything derived from the variant selector."""

    variant: Variant
    expected_title: str
    check_max_age: bool
    max_age_days: float
    workflow_name: str

    @property
    def workflow_path(self) -> str:
        return f".github/workflows/{self.workflow_name}.yml"

    @property
    def repairs_content(self) -> bool:
        return self.variant is Variant.PROJEN


def resolve_title_pattern(
    major_version: str | None,
    library: str = DEFAULT_LIBRARY,
    max_age_days: float = DEFAULT_MAX_AGE_DAYS,
) -> TitlePattern:
    """Resolve the --major-version selector (e.g. v11, all, projen). Raises ConfigurationError if missing."""
    if not major_version:
        msg = "--major-version is required, example v11"
        raise ConfigurationError(msg)

    if major_version == Variant.ALL_NON_MAJOR.value:
        return TitlePattern(
            variant=Variant.ALL_NON_MAJOR,
            expected_title=ALL_NON_MAJOR_TITLE,
            check_max_age=True,
            max_age_days=max_age_days,
            workflow_name=RENOVATE_WORKFLOW,
        )
    if major_version == Variant.PROJEN.value:
        return TitlePattern(
            variant=Variant.PROJEN,
            expected_title=PROJEN_UPGRADE_TITLE,
            check_max_age=True,
            max_age_days=max_age_days,
            workflow_name=PROJEN_UPGRADE_WORKFLOW,
        )
    if not library:
        msg = "--library must not be empty"
        raise ConfigurationError(msg)
    return TitlePattern(
        variant=Variant.LIBRARY,
        expected_title=f"fix(deps): update dependency {library} to {major_version}",
        check_max_age=False,
        max_age_days=max_age_days,
        workflow_name=RENOVATE_WORKFLOW,
    )


@dataclass(frozen=True)
class Settings:
    opt_out_topic: str = "octoherd-no-touch"
    merge: bool = True
    auto_merge: bool = False
    rerun_throttle_minutes: float = 30
    expected_pnpm_version: str = "8"
    pnpm_setup_old_version: str = "8"
    pnpm_setup_new_version: str = "9"
    projenrc_path: str = ".projenrc.ts"
    workflow_files: tuple[str, ...] = (
        ".github/workflows/build.yml",
        ".github/workflows/release.yml",
        ".github/workflows/upgrade-main.yml",
    )


DEFAULT_SETTINGS = Settings()

_SETTINGS_FIELDS = {f.name: f for f in dataclasses.fields(Settings)}

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "off", "0"})


def _parse_bool(key: str, value: Any) -> bool:
    """Accept YAML booleans, 0/1 and the quoted spellings true/false, yes/no, on/off."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    msg = f"{key} must be true or false, got {value!r}"
    raise ConfigurationError(msg)


def resolve_settings(overrides: dict[str, Any] | None, base: Settings = DEFAULT_SETTINGS) -> Settings:
    """Return base with known keys from overrides applied; unknown keys are ignored."""
    if not overrides:
        return base
    values: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in _SETTINGS_FIELDS or value is None:
            continue
        if key == "workflow_files":
            if isinstance(value, str):
                value = [value]
            values[key] = tuple(str(v) for v in value)
        elif key in ("merge", "auto_merge"):
            values[key] = _parse_bool(key, value)
        elif key == "rerun_throttle_minutes":
            try:
                values[key] = float(value)
            except (TypeError, ValueError) as e:
                msg = f"rerun_throttle_minutes must be a number, got {value!r}"
                raise ConfigurationError(msg) from e
        else:
            values[key] = str(value)
    return dataclasses.replace(base, **values)


def load_settings(config_path: Path | None) -> Settings:
    """Load Settings from a YAML file; None gives the defaults."""
    if config_path is None:
        return DEFAULT_SETTINGS

    import yaml

    if not config_path.is_file():
        msg = f"Config file not found: {config_path}"
        raise ConfigurationError(msg)
    try:
        with config_path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {config_path}: {e}"
        raise ConfigurationError(msg) from e
    if not isinstance(data, dict):
        msg = f"{config_path} must contain a mapping at the top level"
        raise ConfigurationError(msg)
    return resolve_settings(data)
