from functools import partial
from http import HTTPStatus
import logging

import h11
import trio


logger = logging.getLogger(__name__)
MAX_RECV = 2 ** 16
IDLE_TIMEOUT = 30
SITEMAP_PATH = '/sitemap.xml'


class Server:
    ''' Serves the proxied sitemap over HTTP/1.1. '''

    def __init__(self, host, port, proxy, base_path=''):
        '''
        Constructor.

        :param str host: The hostname to serve on.
        :param int port: The port to serve on, or zero to automatically pick a
            port.
        :param sitemap_proxy.proxy.SitemapProxy proxy: Produces the response
            for each sitemap request.
        :param str base_path: A prefix for the sitemap route, e.g. ``/config``.
        '''
        self._host = host
        self._port = port
        self._proxy = proxy
        self._path = base_path.rstrip('/') + SITEMAP_PATH

    @property
    def path(self):
        return self._path

    @property
    def port(self):
        return self._port

    async def run(self, *, task_status=trio.TASK_STATUS_IGNORED):
        '''
        Run the HTTP server.

        To ensure that the server is ready, call ``await
        nursery.start(server.run)``.

        :returns: Runs until cancelled.
        '''
        logger.info('Starting server on %s:%d', self._host, self._port)
        async with trio.open_nursery() as nursery:
            serve_fn = partial(trio.serve_tcp, self._handle_connection,
                self._port, host=self._host, handler_nursery=nursery)
            listeners = await nursery.start(serve_fn)
            self._port = listeners[0].socket.getsockname()[1]
            logger.info('Serving %s on port %d', self._path, self._port)
            task_status.started()
        logger.info('Server stopped')

    async def _handle_connection(self, stream):
        '''
        Handle requests on one connection until the client goes away.

        :param trio.SocketStream stream:
        '''
        conn = h11.Connection(h11.SERVER)
        try:
            while True:
                request = None
                with trio.move_on_after(IDLE_TIMEOUT):
                    request = await self._receive_request(conn, stream)
                if request is None:
                    break
                await self._handle_request(conn, stream, request)
                if conn.our_state is not h11.DONE or \
                        conn.their_state is not h11.DONE:
                    break
                conn.start_next_cycle()
        except h11.RemoteProtocolError as exc:
            logger.warning('Bad HTTP request: %s', exc)
            if conn.our_state in (h11.IDLE, h11.SEND_RESPONSE):
                try:
                    await self._send_response(conn, stream,
                        exc.error_status_hint, b'Bad Request')
                except trio.BrokenResourceError:
                    logger.debug('Connection lost before error response')
        except trio.BrokenResourceError:
            logger.debug('Connection lost')
        except Exception:
            logger.exception('Error handling connection')
        finally:
            await stream.aclose()

    async def _receive_request(self, conn, stream):
        '''
        Read one complete request. The body, if any, is discarded.

        :returns: The request, or None if the client closed the connection.
        :rtype: h11.Request
        '''
        request = None
        while True:
            event = conn.next_event()
            if event is h11.NEED_DATA:
                conn.receive_data(await stream.receive_some(MAX_RECV))
            elif isinstance(event, h11.Request):
                request = event
            elif isinstance(event, h11.EndOfMessage):
                return request
            elif isinstance(event, h11.ConnectionClosed):
                return None

    async def _handle_request(self, conn, stream, request):
        ''' Route a request and send the response. HEAD is answered like GET,
        without the body. '''
        start = trio.current_time()
        method = request.method.decode('ascii')
        path = request.target.split(b'?', 1)[0].decode('ascii', 'replace')
        send = partial(self._send_response, conn, stream,
            head_only=method == 'HEAD')
        log_level = logging.INFO

        if path != self._path:
            status = 404
            await send(status, b'Not Found')
        elif method not in ('GET', 'HEAD'):
            status = 405
            await send(status, b'Method Not Allowed', {'Allow': 'GET, HEAD'})
        else:
            response = await self._proxy.handle()
            status = response.status
            if not response.is_success:
                log_level = logging.WARNING
            await send(status, response.body, response.headers)

        elapsed = trio.current_time() - start
        logger.log(log_level, '%s %s %d %0.3fs', method, path, status, elapsed)

    async def _send_response(self, conn, stream, status, body, headers=None,
            head_only=False):
        '''
        Send a complete response.

        :param int status:
        :param bytes body:
        :param dict headers:
        :param bool head_only: Send the headers (including the body's
            Content-Length) but not the body, as a reply to HEAD.
        '''
        all_headers = {'Content-Type': 'text/plain; charset=utf-8'}
        all_headers.update(headers or {})
        all_headers['Content-Length'] = str(len(body))
        response = h11.Response(status_code=status,
            headers=list(all_headers.items()),
            reason=HTTPStatus(status).phrase.encode('ascii'))
        await stream.send_all(conn.send(response))
        if not head_only:
            await stream.send_all(conn.send(h11.Data(data=body)))
        await stream.send_all(conn.send(h11.EndOfMessage()))
