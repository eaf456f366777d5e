"""Shared CLI argument parsing for --flag value options and boolean switches."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any


def parse_flags(
    argv: list[str],
    *specs: tuple[str, str, Any, Callable[[str], Any] | None],
) -> tuple[dict[str, Any], list[str]]:
    """Parse optional --flag value from argv in one pass.

    Each spec is (key, flag_str, default, converter).
    E.g. ("max_age_days", "--max-age-days", 7, float).
    converter can be None for string values.
    Returns (dict of key -> value, remaining argv).
    """
    result: dict[str, Any] = {}
    for key, _flag, default, _converter in specs:
        result[key] = default() if callable(default) else default

    rest: list[str] = []
    i = 0
    while i < len(argv):
        matched = False
        for key, flag_str, _default, converter in specs:
            if argv[i] == flag_str and i + 1 < len(argv):
                result[key] = converter(argv[i + 1]) if converter else argv[i + 1]
                i += 2
                matched = True
                break
            if argv[i].startswith(flag_str + "="):
                value = argv[i].split("=", 1)[1]
                result[key] = converter(value) if converter else value
                i += 1
                matched = True
                break
        if not matched:
            rest.append(argv[i])
            i += 1
    return result, rest


def pop_switches(argv: list[str], *switches: str) -> tuple[set[str], list[str]]:
    """Split boolean switches (e.g. --no-merge) out of argv. Returns (present switches, remaining argv)."""
    present = {a for a in argv if a in switches}
    return present, [a for a in argv if a not in switches]


def path_resolver(s: str) -> Path:
    """Resolve a path argument to absolute Path (e.g. --config)."""
    return Path(s).resolve()
