"""URI parsing and glob metacharacter detection."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import unquote, urlsplit

from multiblob.config import DEFAULT_PRODUCTION_DOMAINS
from multiblob.errors import InvalidUri
from multiblob.logging_config import log

SUPPORTED_SCHEMES = ("http", "https")
SPECIAL_CHARS = "*?![^"

SERVICE_BLOB = "blob"
SERVICE_SHARE = "share"

_SHARE_DOMAIN = ".file.core.windows.net"


@dataclass(frozen=True)
class ParsedUri:
    service: str
    container: str
    object: str


def parse_uri(
    uri: str, production_domains: tuple[str, ...] = DEFAULT_PRODUCTION_DOMAINS
) -> ParsedUri:
    """Split *uri* into service, container and object (or pattern).

    Two shapes are understood:

    * production hosts (``myaccount.blob.core.windows.net``) carry the
      container as the first path segment:
      ``https://myaccount.blob.core.windows.net/mycontainer/dir/blob.txt``
    * emulator hosts (anything else) carry the account first:
      ``http://127.0.0.1:10000/devstoreaccount1/mycontainer/dir/blob.txt``

    Raises:
        InvalidUri: On a malformed URI, an unsupported scheme or a missing
            object segment.
    """
    try:
        parsed = urlsplit(uri, allow_fragments=False)
    except ValueError as exc:
        raise InvalidUri(f"Invalid URI, {exc}: {uri}") from exc
    if parsed.scheme not in SUPPORTED_SCHEMES:
        raise InvalidUri(f"Invalid URI, unsupported scheme: {uri}")

    host = (parsed.hostname or "").lower()
    # "?" is a glob metacharacter here, not the start of a query string.
    raw_path = f"{parsed.path}?{parsed.query}" if parsed.query or uri.endswith("?") else parsed.path
    path = unquote(raw_path).lstrip("/")

    if host.endswith(tuple(d.lower() for d in production_domains)):
        log.debug("URI %s is a production one", uri)
        service = SERVICE_SHARE if host.endswith(_SHARE_DOMAIN) else SERVICE_BLOB
        container, sep, obj = path.partition("/")
    else:
        log.debug("URI %s is an emulator one", uri)
        service = SERVICE_BLOB
        _account, _, rest = path.partition("/")
        container, sep, obj = rest.partition("/")

    if not container or not sep or not obj:
        raise InvalidUri(f"Invalid URI, missing object name: {uri}")

    log.debug("Container: %s, Object: %s", container, obj)
    return ParsedUri(service=service, container=container, object=obj)


def find_pattern_special_char(pattern: str) -> int | None:
    """Return the index of the first unescaped glob metacharacter, or None.

    A backslash makes the character after it literal, itself included.
    """
    i = 0
    while i < len(pattern):
        if pattern[i] == "\\":
            i += 2
            continue
        if pattern[i] in SPECIAL_CHARS:
            return i
        i += 1
    return None


def unescape(pattern: str) -> str:
    """Drop the backslashes that make the next character literal.

    A trailing backslash has nothing to protect and is kept.
    """
    out: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern[i] == "\\" and i + 1 < len(pattern):
            i += 1
        out.append(pattern[i])
        i += 1
    return "".join(out)
