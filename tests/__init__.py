from functools import partial, wraps
from os.path import dirname
from sys import path

import pytest
import trio


# Add this project to the Python path.
path.append(dirname(dirname(__file__)))


class AsyncMock:
    ''' A mock that acts like an async def function. '''
    def __init__(self, return_value=None, raises=None):
        self._raises = raises
        self._return_value = return_value
        self._call_count = 0

    @property
    def called(self):
        return self._call_count > 0

    @property
    def call_count(self):
        return self._call_count

    async def __call__(self, *args, **kwargs):
        self._call_count += 1
        if self._raises:
            raise self._raises
        return self._return_value


class fail_after:
    ''' This decorator fails if the runtime of the decorated function (as
    measured by the Trio clock) exceeds the specified value. '''
    def __init__(self, seconds):
        self._seconds = seconds

    def __call__(self, fn):
        @wraps(fn)
        async def wrapper(*args, **kwargs):
            with trio.move_on_after(self._seconds) as cancel_scope:
                await fn(*args, **kwargs)
            if cancel_scope.cancelled_caught:
                pytest.fail('Test runtime exceeded the maximum {} seconds'
                    .format(self._seconds))
        return wrapper


async def serve_canned(nursery, response):
    '''
    Start a throwaway HTTP server that answers every connection with
    ``response``.

    :param nursery: The server runs in this nursery.
    :param bytes response: Raw HTTP response bytes.
    :returns: The base URL of the server, e.g. ``http://127.0.0.1:1234``.
    '''
    async def handler(stream):
        request = b''
        while not request.endswith(b'\r\n\r\n'):
            data = await stream.receive_some(4096)
            if not data:
                break
            request += data
        await stream.send_all(response)
        await stream.aclose()
    serve_tcp = partial(trio.serve_tcp, handler, port=0, host='127.0.0.1')
    listeners = await nursery.start(serve_tcp)
    addr, port = listeners[0].socket.getsockname()[:2]
    return 'http://{}:{}'.format(addr, port)


def http_response(body, status='200 OK', content_type='application/xml'):
    ''' Build raw HTTP response bytes with a correct Content-Length. '''
    head = 'HTTP/1.1 {}\r\nContent-Type: {}\r\nContent-Length: {}\r\n' \
        'Connection: close\r\n\r\n'.format(status, content_type, len(body))
    return head.encode('ascii') + body
