"""`renovate-driver run`: drive one variant across the given repositories."""

from __future__ import annotations

import dataclasses
import logging
import sys

from renovate_driver.config import (
    DEFAULT_LIBRARY,
    DEFAULT_MAX_AGE_DAYS,
    load_settings,
    resolve_title_pattern,
)
from renovate_driver.errors import ConfigurationError, GitHubApiError
from renovate_driver.github import GitHubClient
from renovate_driver.models import RepositoryTarget
from renovate_driver.pipeline import Outcome, process_repository

from .parse_common import parse_flags, path_resolver, pop_switches

log = logging.getLogger(__name__)

USAGE = (
    "Usage: renovate-driver run --major-version <vNN|all|projen> [--library NAME]\n"
    "                           [--max-age-days N] [--no-merge] [--auto-merge]\n"
    "                           [--config FILE] [--verbose] owner/repo [owner/repo ...]"
)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def fetch_repository(client: GitHubClient, full_name: str) -> RepositoryTarget:
    owner, _, name = full_name.partition("/")
    if not owner or not name:
        msg = f"Repository must be owner/name, got {full_name!r}"
        raise ConfigurationError(msg)
    data = client.request("GET /repos/{owner}/{repo}", owner=owner, repo=name)
    return RepositoryTarget.from_api(data)


def run(
    argv: list[str],
    client: GitHubClient | None = None,
) -> int:
    """Parse run options, then process each repository. Returns 1 only for configuration errors."""
    switches, args = pop_switches(argv, "--no-merge", "--auto-merge", "--verbose")
    try:
        parsed, rest = parse_flags(
            args,
            ("major_version", "--major-version", None, None),
            ("library", "--library", DEFAULT_LIBRARY, None),
            ("max_age_days", "--max-age-days", DEFAULT_MAX_AGE_DAYS, float),
            ("config", "--config", None, path_resolver),
        )
        pattern = resolve_title_pattern(
            parsed["major_version"], parsed["library"], parsed["max_age_days"]
        )
        settings = load_settings(parsed["config"])
    except (ConfigurationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1

    overrides = {}
    if "--no-merge" in switches:
        overrides["merge"] = False
    if "--auto-merge" in switches:
        overrides["auto_merge"] = True
    settings = dataclasses.replace(settings, **overrides)

    unknown = [a for a in rest if a.startswith("--")]
    if unknown:
        print(f"Error: unknown option(s): {' '.join(unknown)}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1
    if not rest:
        print("Error: at least one owner/repo is required", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1

    configure_logging("--verbose" in switches)
    try:
        client = client or GitHubClient.from_env()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log.info(
        "Driving '%s' (merge=%s, auto_merge=%s) across %d repositories",
        pattern.expected_title,
        settings.merge,
        settings.auto_merge,
        len(rest),
    )
    outcomes: dict[str, Outcome] = {}
    for full_name in rest:
        try:
            repo = fetch_repository(client, full_name)
        except (ConfigurationError, GitHubApiError) as e:
            log.error("%s: cannot load repository: %s", full_name, e)
            outcomes[full_name] = Outcome.ERROR
            continue
        outcomes[full_name] = process_repository(client, repo, pattern, settings)

    for full_name, outcome in outcomes.items():
        log.info("%s: %s", full_name, outcome.value)
    return 0


def run_argv() -> None:
    """Dispatch renovate-driver run from sys.argv."""
    sys.exit(run(sys.argv[2:]))
