import brotli
from starlette.types import ASGIApp, Message, Receive, Scope, Send

#############################################
## Brotli compression middleware for ASGI
## Buffers the response and compresses blob downloads and JSON listings
## with a compressible content type when the client accepts 'br'.
#############################################
COMPRESSIBLE_TYPES = (
    'text/',
    'application/json',
    'application/javascript',
    'application/xml',
    'image/svg+xml',
)


def _header(headers, name: bytes) -> str:
    for key, value in headers:
        if key.lower() == name:
            return value.decode('latin1')
    return ''


def is_compressible(content_type: str) -> bool:
    content_type = content_type.lower()
    return any(content_type.startswith(t) or t in content_type for t in COMPRESSIBLE_TYPES)


class BrotliCompression:
    def __init__(self, app: ASGIApp, minimum_size: int = 300, quality: int = 4):
        self.app = app
        self.minimum_size = minimum_size
        self.quality = quality

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope['type'] != 'http' or 'br' not in _header(scope.get('headers', []), b'accept-encoding'):
            await self.app(scope, receive, send)
            return

        start: dict = {}
        body = bytearray()

        async def capture(message: Message) -> None:
            if message['type'] == 'http.response.start':
                start.update(message)
            elif message['type'] == 'http.response.body':
                body.extend(message.get('body', b''))

        await self.app(scope, receive, capture)

        headers = [(k, v) for k, v in start.get('headers', [])]
        compress = (
            not _header(headers, b'content-encoding')
            and len(body) >= self.minimum_size
            and is_compressible(_header(headers, b'content-type'))
        )
        payload = bytes(body)
        if compress:
            payload = brotli.compress(payload, quality=self.quality)
            headers = [(k, v) for k, v in headers if k.lower() != b'content-length']
            headers.append((b'content-encoding', b'br'))
            headers.append((b'vary', b'Accept-Encoding'))
            headers.append((b'content-length', str(len(payload)).encode('latin1')))

        await send({'type': 'http.response.start', 'status': start.get('status', 500), 'headers': headers})
        await send({'type': 'http.response.body', 'body': payload, 'more_body': False})
