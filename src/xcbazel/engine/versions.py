"""
Toolchain version handling.

`normalize` turns a dotted version string of 1 to 3 components into the
concatenated digit token that shell-era matrix filters compared as
integers. It pads missing fields with zeros but does not pad each field to
a fixed width, so distinct versions can collide ("1.11" and "11.1" both
give "1110").

`Version` is the strict, field-wise comparable form. The runner uses it for
every ordering decision; for the shipped matrix (8.3.3, 9.0, 9.1, 9.2) the
two orderings agree.
"""

import re
from dataclasses import dataclass

from xcbazel.engine.exceptions import InvalidVersionFormat

_VERSION_PATTERN = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?\.?$")


def normalize(version: str) -> str:
    """
    Pad a dotted version to three fields and drop the separators.

    Never raises; malformed input yields a token that compares incorrectly.

    >>> normalize("9.1")
    '910'
    >>> normalize("8.3.3")
    '833'
    """
    padded = version[:-1] if version.endswith(".") else version
    while padded.count(".") < 2:
        padded += ".0"
    return padded.replace(".", "")


@dataclass(frozen=True, order=True)
class Version:
    """An Xcode or SDK version as (major, minor, patch)."""

    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> "Version":
        """
        Parse "M", "M.m" or "M.m.p", with an optional trailing dot.

        Raises:
            InvalidVersionFormat: If the string is not 1 to 3 non-negative integers.
        """
        match = _VERSION_PATTERN.match(str(text).strip())
        if match is None:
            raise InvalidVersionFormat(str(text))
        major, minor, patch = (int(part) if part else 0 for part in match.groups())
        return cls(major, minor, patch)

    def as_number(self) -> str:
        """Return the legacy concatenated token, e.g. "910" for 9.1."""
        return normalize(str(self))

    def sort_token(self, width: int = 3) -> str:
        """Return a collision-free token with every field zero-padded to `width`."""
        return "".join(str(part).zfill(width) for part in (self.major, self.minor, self.patch))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


__all__ = ["Version", "normalize"]
