"""
Domain — version parsing and minimum-version checks (pure).

No I/O, no subprocess.
"""

from __future__ import annotations

import re

_NUMERIC_PREFIX = re.compile(r"^v?(\d+(?:\.\d+)*)")


def parse_version(version: str) -> tuple[int, ...]:
    """Parse a version string into a comparable tuple.

    Only the leading numeric part counts: ``"v1.2.3"`` → ``(1, 2, 3)``,
    ``"3.3a"`` → ``(3, 3)``. Missing components are padded with zeros
    to three places.

    Raises:
        ValueError: If the string has no numeric prefix.
    """
    match = _NUMERIC_PREFIX.match(version.strip())
    if not match:
        raise ValueError(f"Not a version: {version!r}")
    parts = tuple(int(x) for x in match.group(1).split("."))[:3]
    return parts + (0,) * (3 - len(parts))


def satisfies_minimum(version: str | None, minimum: str | None) -> tuple[bool, str]:
    """Check a detected version against a minimum.

    An absent minimum is always satisfied. An absent or unparseable
    detected version is treated as satisfying: the tool runs, and we
    cannot prove it is too old.

    Returns:
        ``(ok, message)``. ``message`` is empty when ok.
    """
    if not minimum or not version:
        return True, ""

    try:
        found = parse_version(version)
        required = parse_version(minimum)
    except ValueError:
        return True, ""

    if found >= required:
        return True, ""
    return False, f"version {version} < {minimum} (minimum required)"
