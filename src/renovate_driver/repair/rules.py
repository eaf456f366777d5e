"""Text rewrite rules applied to projen upgrade branches.

Each rule takes the current file text and returns the rewritten text, or None when it
does not apply. Applying a rule to its own output returns None.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

PNPM_MARKER = "javascript.NodePackageManager.PNPM"
PROJEN_IMPORT_SYMBOL = "javascript"

_PACKAGE_MANAGER_LINE = re.compile(
    r"^[ \t]*packageManager:[ \t]*javascript\.NodePackageManager\.PNPM[ \t]*,?[ \t]*\r?\n?",
    re.MULTILINE,
)
_PNPM_VERSION_LINE = re.compile(
    r"""^[ \t]*pnpmVersion:[ \t]*(?P<q>['"`])(?P<version>[^'"`\n]*)(?P=q)[ \t]*,?[ \t]*\r?\n?""",
    re.MULTILINE,
)

_OPENERS = ("{", "[", "(")
_CLOSERS = ("}", "]", ")", ",")


@dataclass(frozen=True)
class PnpmOptionsRemoval:
    text: str
    pinned_version: str | None


def _delete_span(text: str, start: int, end: int, seams: list[int]) -> str:
    """Cut text[start:end] and record where the cut was; earlier seams shift with the text."""
    width = end - start
    seams[:] = [s if s <= start else max(start, s - width) for s in seams]
    seams.append(start)
    return text[:start] + text[end:]


def _delete_all(text: str, pattern: re.Pattern[str], seams: list[int]) -> str:
    m = pattern.search(text)
    while m:
        text = _delete_span(text, m.start(), m.end(), seams)
        m = pattern.search(text, m.start())
    return text


def remove_deprecated_pnpm_options(text: str) -> PnpmOptionsRemoval | None:
    """Drop the packageManager: PNPM option and its pnpmVersion pin, then tidy up.

    Only the blank lines around the deleted lines are touched. Returns None when the
    deprecated marker is not in the file.
    """
    if PNPM_MARKER not in text:
        return None

    pinned_version: str | None = None
    m = _PNPM_VERSION_LINE.search(text)
    if m:
        pinned_version = m.group("version")

    seams: list[int] = []
    new_text = _delete_all(text, _PACKAGE_MANAGER_LINE, seams)
    new_text = _delete_all(new_text, _PNPM_VERSION_LINE, seams)

    span = _unused_import_span(new_text, PROJEN_IMPORT_SYMBOL)
    if span is not None:
        new_text = _delete_span(new_text, *span, seams)

    new_text = tidy_blank_lines(new_text, seams)
    if new_text == text:
        return None
    return PnpmOptionsRemoval(new_text, pinned_version)


def _unused_import_span(text: str, symbol: str) -> tuple[int, int] | None:
    pattern = re.compile(
        rf"^[ \t]*import[ \t]*\{{[ \t]*{re.escape(symbol)}[ \t]*\}}"
        r"""[ \t]*from[ \t]*['"]projen['"][ \t]*;?[ \t]*\r?\n?""",
        re.MULTILINE,
    )
    m = pattern.search(text)
    if not m:
        return None
    if re.search(rf"\b{re.escape(symbol)}\b", text[: m.start()] + text[m.end() :]):
        return None
    return m.span()


def remove_unused_import(text: str, symbol: str) -> str | None:
    """Remove ``import { symbol } from 'projen';`` when nothing else in the file references symbol."""
    span = _unused_import_span(text, symbol)
    if span is None:
        return None
    start, end = span
    return text[:start] + text[end:]


def _blank_run(text: str, pos: int) -> tuple[int, int]:
    """Bounds of the whole blank lines directly before and after line offset pos."""
    start = pos
    while start > 0:
        line_start = text.rfind("\n", 0, start - 1) + 1
        if text[line_start:start].strip():
            break
        start = line_start
    end = pos
    while end < len(text):
        nl = text.find("\n", end)
        if nl == -1 or text[end:nl].strip():
            break
        end = nl + 1
    return start, end


def tidy_blank_lines(text: str, seams: Iterable[int]) -> str:
    """Normalize the blank-line run at each seam (a line offset where lines were deleted).

    A run right after an opening bracket, or right before a closing bracket or a leading
    separator, is dropped; a run of three or more blank lines becomes one. Blank lines
    away from the seams are left alone.
    """
    floor = len(text) + 1
    for pos in sorted(set(seams), reverse=True):
        if pos >= floor:
            continue
        start, end = _blank_run(text, pos)
        floor = start
        if start == end:
            continue
        if text[:start].rstrip().endswith(_OPENERS) or text[end:].lstrip().startswith(_CLOSERS):
            replacement = ""
        elif text.count("\n", start, end) >= 3:
            replacement = "\n"
        else:
            continue
        text = text[:start] + replacement + text[end:]
    return text


def _pnpm_setup_pattern(old_version: str) -> re.Pattern[str]:
    # - uses: pnpm/action-setup@v2
    #   with:
    #     version: "8"
    return re.compile(
        r"(?P<prefix>uses:[ \t]*pnpm/action-setup@[^\s]+[ \t]*\r?\n"
        r"[ \t]*with:[ \t]*\r?\n"
        r"(?:[ \t]*(?!version:)[\w-]+:[^\n]*\n)*?"
        r"[ \t]*version:[ \t]*)"
        rf"(?P<q>['\"]){re.escape(old_version)}(?P=q)"
    )


def bump_pnpm_setup_version(text: str, old_version: str = "8", new_version: str = "9") -> str | None:
    """Rewrite a quoted pnpm/action-setup ``version`` to an unquoted new version."""
    new_text = _pnpm_setup_pattern(old_version).sub(
        lambda m: f"{m.group('prefix')}{new_version}", text
    )
    return new_text if new_text != text else None
