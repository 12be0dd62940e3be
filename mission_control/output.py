"""Shared helpers for printing command results."""

from typing import Iterable

from mission_control.mutators import MutationResult


def report(result: MutationResult, success: str) -> bool:
    """Print the outcome of a mutation. Returns whether it was applied."""
    if result.applied:
        print(success)
    else:
        print(f"Nothing changed: {result.reason}")
    return result.applied


def resolve(items: Iterable, ref: str) -> str:
    """Expand a unique id prefix to the full id; other input is returned as-is."""
    matches = [item.id for item in items if item.id.startswith(ref)]
    if ref in matches or len(matches) != 1:
        return ref
    return matches[0]


def money(value: float) -> str:
    return f"{value:,.2f}"
