from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass

from ..api.client import DirectoryLookup

"""Unique username search.

Probes base, base.001, base.002, ... one at a time against the directory.
The search is strictly sequential: probe, wait, compare, probe again.
"""

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "UsernameResolution",
    "candidate_username",
    "resolve_unique_username",
    "generate_unique_username",
]

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 999


@dataclass(frozen=True)
class UsernameResolution:
    username: str
    available: bool  # False when the attempt cutoff was hit on a taken name
    attempts: int


def candidate_username(base: str, counter: int) -> str:
    """Counter 0 is the base itself; suffixes are zero-padded to at least 3 digits."""
    if counter == 0:
        return base
    return f"{base}.{counter:03d}"


def resolve_unique_username(
    base: str,
    directory: DirectoryLookup,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    reserved: Collection[str] = (),
) -> UsernameResolution:
    """Find the first candidate the directory reports as free.

    Names in ``reserved`` (already handed out in the current pass) count as
    taken without a lookup. After ``max_attempts`` probes the last probed
    candidate is returned with ``available=False`` instead of raising.
    """
    username = base
    for counter in range(max_attempts):
        username = candidate_username(base, counter)
        if username in reserved:
            continue
        if not directory.username_exists(username):
            return UsernameResolution(username=username, available=True, attempts=counter + 1)
    logger.warning(
        f"no free username for base {base!r} after {max_attempts} attempts; keeping {username!r}"
    )
    return UsernameResolution(username=username, available=False, attempts=max_attempts)


def generate_unique_username(
    base: str, directory: DirectoryLookup, max_attempts: int = DEFAULT_MAX_ATTEMPTS
) -> str:
    return resolve_unique_username(base, directory, max_attempts).username
