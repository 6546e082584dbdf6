from __future__ import annotations

"""Version candidate selection for newly inserted entries.

Release identifiers are arbitrary strings that contain a dotted numeric
version (``core.wcm.components.reactor-2.20.10``). Ranking compares the dotted
components numerically, so ``2.20.10`` sorts above ``2.20.9``.

Fetching the identifiers is the caller's job; :class:`VersionResolver` only
holds a reference to whatever callable supplies them, and caches nothing.
"""

import logging
import re
from typing import Callable, Iterable, List, Optional, Tuple, Union

from lxml import etree as ET

from pom_toolkit.core.exceptions import NoMatchingVersion, ParseError

__all__ = [
    "LATEST",
    "version_key",
    "extract_version",
    "select_version",
    "parse_maven_metadata",
    "VersionResolver",
]

logger = logging.getLogger(__name__)

LATEST = "latest"

_DOTTED = re.compile(r"\d+(?:\.\d+)+")

VersionKey = Tuple[int, ...]


def _last_run(release: str) -> Optional[re.Match]:
    found = list(_DOTTED.finditer(release or ""))
    return found[-1] if found else None


def extract_version(release: str) -> Optional[str]:
    """Return the concrete version carried by *release*, or ``None``.

    The version starts at the last dotted numeric run and keeps whatever
    qualifier follows it: ``core.wcm.components.reactor-2.20.10`` gives
    ``2.20.10``, ``1.0.0-SNAPSHOT`` stays as it is.
    """
    match = _last_run(release)
    if match is None:
        return None
    return release[match.start():].strip()


def version_key(release: str) -> Optional[VersionKey]:
    """Numeric sort key for *release* (``"v2.20.10-rc1"`` -> ``(2, 20, 10)``)."""
    match = _last_run(release)
    if match is None:
        return None
    return tuple(int(part) for part in match.group().split("."))


def _prefix_key(requested: str) -> Optional[VersionKey]:
    parts = requested.strip().split(".")
    if not all(p.isdigit() for p in parts):
        return None
    return tuple(int(p) for p in parts)


def select_version(requested: str, releases: Iterable[str]) -> str:
    """Pick the highest release matching *requested*.

    Parameters
    ----------
    requested
        ``"latest"`` or a dotted prefix such as ``"2.20"``. A prefix matches
        whole components only: ``"2.2"`` does not match ``2.20.1``.
    releases
        Release identifiers; entries without a dotted version are ignored.

    Releases are ranked by their numeric key. On equal keys a plain release
    beats a qualified one (``1.0.0`` over ``1.0.0-SNAPSHOT``), and among
    equally plain ones the later entry in *releases* wins.

    Raises
    ------
    NoMatchingVersion
        When nothing matches.
    """
    pool = list(releases)
    candidates: List[Tuple[VersionKey, bool, int, str]] = []
    for position, release in enumerate(pool):
        match = _last_run(release)
        if match is None:
            continue
        key = tuple(int(part) for part in match.group().split("."))
        version = release[match.start():].strip()
        candidates.append((key, version == match.group(), position, version))

    if requested.strip().lower() != LATEST:
        prefix = _prefix_key(requested)
        if prefix is None:
            raise NoMatchingVersion(requested, pool)
        candidates = [c for c in candidates if c[0][:len(prefix)] == prefix]

    if not candidates:
        raise NoMatchingVersion(requested, pool)

    best = max(candidates, key=lambda c: c[:3])[3]
    logger.debug("Resolved version '%s' -> %s (from %d releases)", requested, best, len(pool))
    return best


def parse_maven_metadata(text: Union[str, bytes]) -> List[str]:
    """Return ``versioning/versions/version`` values from a ``maven-metadata.xml`` body."""
    if isinstance(text, str):
        data, parser = text.encode("utf-8"), ET.XMLParser(no_network=True, encoding="utf-8")
    else:
        data, parser = text, ET.XMLParser(no_network=True)
    try:
        root = ET.fromstring(data, parser)
    except ET.XMLSyntaxError as exc:
        line, column = getattr(exc, "position", (None, None))
        raise ParseError(f"Malformed maven metadata: {exc.msg}", source="maven-metadata.xml",
                         line=line, column=column, cause=exc) from exc

    versions = [
        (el.text or "").strip()
        for el in root.iterfind("versioning/versions/version")
    ]
    versions = [v for v in versions if v]
    if not versions:
        latest = root.findtext("versioning/latest") or root.findtext("versioning/release")
        if latest:
            versions = [latest.strip()]
    return versions


class VersionResolver:
    """Resolve a requested version against releases supplied by *source*.

    ``source`` is any zero-argument callable returning release identifiers,
    e.g. a function that downloads and parses ``maven-metadata.xml``. It is
    called once per :meth:`resolve`.
    """

    def __init__(self, source: Callable[[], Iterable[str]]) -> None:
        self.source = source

    def resolve(self, requested: str = LATEST) -> str:
        releases = list(self.source())
        return select_version(requested, releases)
