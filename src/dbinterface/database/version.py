"""Server version parsing and vendor classification.

Example:
    >>> version_to_int("10.1.22-MariaDB-")
    100122
    >>> parse_version("6.1.0", "Percona Server (GPL)").is_percona
    True
"""

import re
from typing import Any, Mapping, Optional

from .models import ServerVersion

_VERSION_PATTERN = re.compile(r"^\s*(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def version_to_int(version: Any) -> int:
    """Encode ``major.minor.patch`` as ``major*10000 + minor*100 + patch``.

    Missing components count as 0 and trailing build text is ignored.
    Anything without a leading number encodes as 0.
    """
    if not isinstance(version, str):
        version = "" if version is None else str(version)

    match = _VERSION_PATTERN.match(version)
    if match is None:
        return 0

    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    return major * 10000 + minor * 100 + patch


def parse_version(raw: Any, comment: Any = "") -> ServerVersion:
    """Parse ``@@version`` and ``@@version_comment`` into a ServerVersion.

    MariaDB and Percona are recognised by a case-insensitive substring of
    the comment; MariaDB also embeds its name in the version string itself.
    """
    raw_text = "" if raw is None else str(raw)
    comment_text = "" if comment is None else str(comment)
    integer = version_to_int(raw_text)

    if integer == 0:
        return ServerVersion(raw=raw_text, comment=comment_text)

    comment_lower = comment_text.lower()
    is_mariadb = "mariadb" in comment_lower or "mariadb" in raw_text.lower()
    is_percona = not is_mariadb and "percona" in comment_lower
    return ServerVersion(
        raw=raw_text,
        integer=integer,
        comment=comment_text,
        is_mariadb=is_mariadb,
        is_percona=is_percona,
    )


class VersionParser:
    """Stateless version parsing helpers."""

    VERSION_KEY = "@@version"
    COMMENT_KEY = "@@version_comment"

    @staticmethod
    def to_int(version: Any) -> int:
        return version_to_int(version)

    @staticmethod
    def parse(raw: Any, comment: Any = "") -> ServerVersion:
        return parse_version(raw, comment)

    @classmethod
    def from_row(cls, row: Optional[Mapping[str, Any]]) -> ServerVersion:
        """Parse the row returned by ``SELECT @@version, @@version_comment``."""
        if not row:
            return ServerVersion()
        return parse_version(row.get(cls.VERSION_KEY, ""), row.get(cls.COMMENT_KEY, ""))

    @staticmethod
    def needs_upgrade(version: Any, minimum: int) -> bool:
        """Whether ``version`` is below the lowest supported version.

        Args:
            version: ServerVersion, integer or version string
            minimum: Lowest supported version as an integer
        """
        if isinstance(version, ServerVersion):
            integer = version.integer
        elif isinstance(version, int):
            integer = version
        else:
            integer = version_to_int(version)
        return integer < minimum
