from typing import Any
from fastapi import HTTPException
from starlette.requests import Request

from blobstore_lib.storage.interfaces import StorageProtocol
from blobstore_lib.util import normalize_identifier


def _container(request: Request):
    container = getattr(request.app.state, 'container', None)
    if container is None:
        raise HTTPException(status_code=500, detail="Service container not configured")
    return container


def resolve_service(request: Request, name: str) -> Any:
    """Resolve a named service from the application's service container.

    Requires that `app.state.container` exists and has the named
    registration, otherwise an HTTP 500 is raised.
    """
    container = _container(request)
    try:
        return container.get(name)
    except KeyError:
        raise HTTPException(status_code=500, detail=f"Service '{name}' not configured")


def resolve_storage(request: Request, identifier: str) -> StorageProtocol:
    """Resolve a storage by identifier; unknown identifiers answer HTTP 404."""
    storage = _container(request).get_storage(identifier)
    if storage is None:
        raise HTTPException(status_code=404, detail={
            'error': 'storage_not_found',
            'message': f"Storage '{normalize_identifier(identifier)}' is not registered",
        })
    return storage
