import re
from typing import Optional

DEFAULT_IDENTIFIER = "default"

_SEPARATORS = re.compile(r'[\\/]+')


def normalize_identifier(identifier: Optional[str]) -> str:
    """Return the storage identifier used for registry and provider lookups.

    `None` and blank strings map to "default" so that callers which omit
    the identifier always land on the same storage.
    """
    if identifier is None or not str(identifier).strip():
        return DEFAULT_IDENTIFIER
    return str(identifier)


def normalize_path(full_name: str) -> str:
    """Canonicalize a virtual path.

    Backslashes and repeated separators collapse to a single '/', leading
    '/' and '.' characters are stripped, and so are '.' segments and a
    trailing '/'. The empty string names the root. '..' segments are kept;
    storages refuse such paths (see `has_parent_reference`).
    """
    if full_name is None:
        raise TypeError("full_name must not be None")
    path = _SEPARATORS.sub('/', str(full_name)).lstrip('/.')
    return '/'.join(segment for segment in path.split('/') if segment and segment != '.')


def has_parent_reference(path: str) -> bool:
    return '..' in path.split('/')


def parent_path(full_name: str) -> str:
    path = normalize_path(full_name)
    head, _, _ = path.rpartition('/')
    return head


def join_path(*parts: str) -> str:
    return '/'.join(p for p in (normalize_path(x) for x in parts) if p)


def resolve_rename_target(full_name: str, new_name: str) -> str:
    """Compute the canonical destination of a rename.

    A `new_name` starting with '/' is an absolute virtual path. Anything
    else names a sibling inside the parent directory of `full_name`.
    """
    if new_name is None:
        raise TypeError("new_name must not be None")
    if new_name.startswith('/'):
        return normalize_path(new_name)
    return join_path(parent_path(full_name), new_name)
