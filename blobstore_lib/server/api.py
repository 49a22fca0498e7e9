import io
import logging
import mimetypes
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from blobstore_lib.services.resolver import resolve_service, resolve_storage
from blobstore_lib.storage.errors import StorageDisposedError
from blobstore_lib.storage.helpers import read_bytes
from .health import get_health

logger = logging.getLogger(__name__)
router = APIRouter()


class RenamePayload(BaseModel):
    new_name: str


async def _call(fn, *args):
    """Run a blocking storage call off the event loop."""
    try:
        return await run_in_threadpool(fn, *args)
    except StorageDisposedError as e:
        raise HTTPException(status_code=503, detail={'error': 'storage_disposed', 'message': str(e)})


def _blob_json(blob) -> dict:
    out = blob.to_dict()
    if blob.is_file:
        created, modified = blob.storage.get_timestamps(blob.full_name)
        out['creation_time'] = created.isoformat() if created else None
        out['last_modified_time'] = modified.isoformat() if modified else None
    return out


def _not_found(storage_id: str, path: str) -> HTTPException:
    return HTTPException(status_code=404, detail={'error': 'blob_not_found', 'message': f"{storage_id}:{path}"})


@router.get('/health')
async def api_health(request: Request):
    container = getattr(request.app.state, 'container', None)
    server_cfg = None
    storages = []
    if container is not None:
        storages = container.storage_registry.identifiers()
        try:
            server_cfg = container.get('server_config')
        except KeyError:
            server_cfg = None
    return get_health(getattr(server_cfg, 'server_name', None), storages)


@router.get('/storages/{storage_id}/info/{path:path}')
async def api_info(storage_id: str, path: str, request: Request):
    storage = resolve_storage(request, storage_id)
    blob = await _call(storage.query, path)
    if blob is None:
        raise _not_found(storage_id, path)
    return await _call(_blob_json, blob)


@router.get('/storages/{storage_id}/list')
@router.get('/storages/{storage_id}/list/{path:path}')
async def api_list(storage_id: str, request: Request, path: str = ''):
    storage = resolve_storage(request, storage_id)
    blobs = await _call(storage.list, path)
    return [blob.to_dict() for blob in blobs]


@router.get('/storages/{storage_id}/blobs/{path:path}')
async def api_read(storage_id: str, path: str, request: Request):
    storage = resolve_storage(request, storage_id)
    data = await _call(read_bytes, storage, path)
    if data is None:
        raise _not_found(storage_id, path)
    media_type, _ = mimetypes.guess_type(path)
    return Response(content=data, media_type=media_type or 'application/octet-stream')


@router.put('/storages/{storage_id}/blobs/{path:path}')
async def api_write(storage_id: str, path: str, request: Request):
    storage = resolve_storage(request, storage_id)
    body = await request.body()
    ok = await _call(storage.write, path, io.BytesIO(body))
    if not ok:
        raise HTTPException(status_code=409, detail={'error': 'write_failed', 'message': f"Could not write {path}"})
    logger.debug("Wrote %d bytes to %s:%s", len(body), storage_id, path)
    return {'ok': True, 'size': len(body)}


@router.delete('/storages/{storage_id}/blobs/{path:path}')
async def api_delete(storage_id: str, path: str, request: Request):
    storage = resolve_storage(request, storage_id)
    if not await _call(storage.delete, path):
        raise _not_found(storage_id, path)
    return {'ok': True}


@router.post('/storages/{storage_id}/rename/{path:path}')
async def api_rename(storage_id: str, path: str, payload: RenamePayload, request: Request):
    storage = resolve_storage(request, storage_id)
    if not await _call(storage.rename, path, payload.new_name):
        raise HTTPException(status_code=409, detail={'error': 'rename_failed', 'message': f"Could not rename {path}"})
    return {'ok': True}


@router.post('/storages/{storage_id}/directories/{path:path}')
async def api_create_directory(storage_id: str, path: str, request: Request):
    storage = resolve_storage(request, storage_id)
    if not await _call(storage.create_directory, path):
        raise HTTPException(status_code=409, detail={'error': 'mkdir_failed', 'message': f"Could not create {path}"})
    return {'ok': True}


@router.get('/storages/{storage_id}/uri/{path:path}')
async def api_uri(storage_id: str, path: str, request: Request):
    storage = resolve_storage(request, storage_id)
    uri: Optional[str] = await _call(storage.make_uri_string, path)
    return {'uri': uri}


@router.get('/server/config')
async def api_server_config(request: Request):
    cfg = resolve_service(request, 'server_config')
    return cfg.model_dump(exclude={'storages'})
