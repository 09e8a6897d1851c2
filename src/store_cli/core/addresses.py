"""Build fully-qualified store addresses.

Address shapes::

    {base}caches/{scope}s/{scope_id}/{encoded_key}
    {base}builds/{build_id}/ARTIFACTS/{encoded_key}
    {base}builds/{build_id}-{key}
"""

import re
from typing import Union
from urllib.parse import quote, urlsplit

from store_cli.config import ExecutionContext
from store_cli.core.keys import normalize_key
from store_cli.core.models import Address, Scope, StoreType
from store_cli.core.scopes import resolve_scope
from store_cli.errors import InvalidParameters, MalformedAddress

# Sub-delimiters the store accepts unescaped inside a path segment.
# Everything else outside the unreserved set is percent-encoded, "/" included.
PATH_SEGMENT_SAFE = "$&+:=@"

# Log keys are not encoded, so these can reach the final URL.
_CONTROL_CHAR = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def escape_segment(value: str) -> str:
    """Percent-encode *value* for use as a single URL path segment."""
    # Keys holding undecodable path bytes are escaped byte for byte.
    return quote(value.encode("utf-8", "surrogateescape"), safe=PATH_SEGMENT_SAFE)


def build_path(
    store_type: StoreType, scope: Scope, key: str, ctx: ExecutionContext
) -> str:
    """Build the store-relative path for a key.

    Returns:
        Relative path, or an empty string when it cannot be resolved
    """
    if store_type is StoreType.CACHE:
        scope_id = resolve_scope(scope, ctx)
        if not scope_id:
            return ""
        encoded = escape_segment(normalize_key(store_type, key))
        return f"caches/{scope.value}s/{scope_id}/{encoded}"

    if store_type is StoreType.ARTIFACT:
        encoded = escape_segment(normalize_key(store_type, key))
        return f"builds/{ctx.build_id}/ARTIFACTS/{encoded}"

    if store_type is StoreType.LOG:
        return f"builds/{ctx.build_id}-{key}"

    return ""


def build_address(
    store_type: Union[StoreType, str],
    scope: Union[Scope, str],
    key: str,
    ctx: ExecutionContext,
) -> Address:
    """Build the full store address for a key.

    Args:
        store_type: Store type, as enum or lower-case name
        scope: Scope, as enum or lower-case name
        key: Raw key
        ctx: Execution context providing ids and the base URL

    Returns:
        Immutable Address

    Raises:
        InvalidParameters: If the store type or scope is unknown, or the
            path cannot be resolved
        MalformedAddress: If the result is not a usable URL
    """
    store_type = StoreType.parse(store_type)
    scope = Scope.parse(scope)

    path = build_path(store_type, scope, key, ctx)
    if not path:
        raise InvalidParameters(
            f"invalid parameters: cannot resolve {store_type.value} path "
            f"for scope '{scope.value}'"
        )

    url = f"{ctx.store_url}{path}"
    if _CONTROL_CHAR.search(url):
        raise MalformedAddress(f"malformed store address {url!r}: control character in URL")
    if _BAD_ESCAPE.search(url):
        raise MalformedAddress(f"malformed store address {url}: invalid percent escape")

    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise MalformedAddress(f"malformed store address {url}: {e}") from e

    if not parts.scheme or not parts.netloc:
        raise MalformedAddress(f"malformed store address {url}: missing scheme or host")

    return Address(url=url, key=normalize_key(store_type, key), store_type=store_type)
