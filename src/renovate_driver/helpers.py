"""Shared helpers for renovate_driver (timestamps, elapsed time, retry)."""

from __future__ import annotations

from datetime import datetime, timezone

# --- Time ---


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO-8601 timestamp (``2024-05-01T10:00:00Z``) into an aware datetime."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def days_between(earlier: datetime, later: datetime) -> float:
    """Elapsed days (fractional) from earlier to later."""
    return (later - earlier).total_seconds() / (60 * 60 * 24)


def minutes_between(earlier: datetime, later: datetime) -> float:
    """Elapsed minutes (fractional) from earlier to later."""
    return (later - earlier).total_seconds() / 60


# --- Retry ---


def fibonacci_backoff_sequence(max_total_seconds: int = 300) -> list[int]:
    """Generate Fibonacci backoff sequence (seconds) up to max_total_seconds."""
    sequence: list[int] = []
    total = 0
    a, b = 1, 1
    while total + a <= max_total_seconds:
        sequence.append(a)
        total += a
        a, b = b, a + b
    return sequence


def backoff_for_attempt(sequence: list[int], attempt: int) -> int:
    """Wait time for a zero-based attempt; the last step repeats once the sequence is exhausted."""
    if attempt < len(sequence):
        return sequence[attempt]
    return sequence[-1] if sequence else 1
