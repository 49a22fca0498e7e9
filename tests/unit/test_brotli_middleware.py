import brotli
from fastapi import FastAPI
from fastapi.responses import Response
from fastapi.testclient import TestClient

from blobstore_lib.middleware.brotli import BrotliCompression, is_compressible


def _make_app(body: bytes, media_type: str = 'application/json', headers=None):
    app = FastAPI()

    @app.get('/')
    def index():
        return Response(content=body, media_type=media_type, headers=headers)

    app.add_middleware(BrotliCompression, minimum_size=10, quality=1)
    return app


def test_no_brotli_requested():
    client = TestClient(_make_app(b'hello world' * 2))
    r = client.get('/', headers={'Accept-Encoding': 'identity'})
    assert r.status_code == 200
    assert r.headers.get('content-encoding') is None
    assert r.content == b'hello world' * 2


def test_small_body_not_compressed():
    client = TestClient(_make_app(b'short'))
    r = client.get('/', headers={'Accept-Encoding': 'br'})
    assert r.status_code == 200
    assert r.headers.get('content-encoding') is None
    assert r.content == b'short'


def test_binary_body_not_compressed():
    client = TestClient(_make_app(b'\x00' * 100, media_type='application/octet-stream'))
    r = client.get('/', headers={'Accept-Encoding': 'br'})
    assert r.headers.get('content-encoding') is None


def test_compress_json_body():
    body = b'{"key": "' + b'a' * 200 + b'"}'
    client = TestClient(_make_app(body))
    r = client.get('/', headers={'Accept-Encoding': 'br'})
    assert r.status_code == 200
    assert r.headers.get('content-encoding') == 'br'
    # httpx transparently decodes brotli when the decoder is installed
    raw = r.content
    if raw != body:
        raw = brotli.decompress(raw)
    assert raw == body


def test_already_encoded_passthrough():
    client = TestClient(_make_app(b'x' * 100, media_type='text/plain', headers={'content-encoding': 'x-custom'}))
    r = client.get('/', headers={'Accept-Encoding': 'br'})
    assert r.headers.get('content-encoding') == 'x-custom'


def test_is_compressible():
    assert is_compressible('text/plain; charset=utf-8')
    assert is_compressible('application/json')
    assert is_compressible('image/svg+xml')
    assert not is_compressible('image/png')
