"""Project URL resolution.

Operators paste whatever Jira URL their browser shows. Two conventions are
recognized, tried in order:

- legacy: ``https://host[:port][/context]/browse/KEY``
- current: ``https://host[:port][/context]/projects/KEY``

Both resolve to the same base address, context path and key.
"""

import re
from urllib.parse import urlsplit

from .errors import MalformedUrlError
from .models import ParsedProjectUrl

# Ordered path markers; the key is the single segment following the marker.
PATH_MARKERS: tuple[str, ...] = ("browse", "projects")

_KEY_PATTERN = r"[A-Za-z0-9][A-Za-z0-9_-]*"


def _marker_pattern(marker: str) -> re.Pattern[str]:
    return re.compile(rf"^(?P<prefix>(?:/[^/]+)*?)/{marker}/(?P<key>{_KEY_PATTERN})/?$")


_MARKER_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    _marker_pattern(marker) for marker in PATH_MARKERS
)


def parse_url(raw_url: str) -> ParsedProjectUrl:
    """Split a project URL into base address, context path and key.

    Args:
        raw_url: URL as supplied by the operator. Query strings and
            fragments are ignored, as is a trailing slash after the key.

    Returns:
        ParsedProjectUrl with ``path_prefix`` set to "" when nothing sits
        between the host and the marker.

    Raises:
        MalformedUrlError: If the URL has no scheme/host, no recognized
            marker, or an empty key.
    """
    url = (raw_url or "").strip()
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise MalformedUrlError(url, "expected scheme://host")

    base_address = f"{parts.scheme}://{parts.netloc}"
    for pattern in _MARKER_PATTERNS:
        match = pattern.match(parts.path)
        if match is None:
            continue
        try:
            return ParsedProjectUrl(
                base_address=base_address,
                path_prefix=match.group("prefix"),
                project_or_issue_key=match.group("key"),
            )
        except ValueError as e:
            raise MalformedUrlError(url, str(e)) from e

    markers = " or ".join(f"/{marker}/<KEY>" for marker in PATH_MARKERS)
    raise MalformedUrlError(url, f"expected a path ending in {markers}")


__all__ = ["PATH_MARKERS", "parse_url"]
