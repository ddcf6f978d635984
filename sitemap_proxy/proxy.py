import asyncio
from dataclasses import dataclass, field
import logging

import aiohttp
import trio
import trio_asyncio

from .config import ConfigurationError
from .document import decode, encode
from .pipeline import transform


logger = logging.getLogger(__name__)
XML_CONTENT_TYPE = 'application/xml; charset=utf-8'
TEXT_CONTENT_TYPE = 'text/plain; charset=utf-8'
NO_CACHE = 'no-store, max-age=0'
USER_AGENT = 'sitemap-proxy'


class UpstreamFetchError(Exception):
    ''' The source sitemap could not be downloaded. '''


@dataclass
class ProxyResponse:
    ''' The outcome of one proxied sitemap request. '''
    status: int
    body: bytes
    headers: dict = field(default_factory=dict)

    @classmethod
    def success(cls, xml):
        return cls(200, xml, {
            'Content-Type': XML_CONTENT_TYPE,
            'Cache-Control': NO_CACHE,
        })

    @classmethod
    def failure(cls):
        ''' An opaque error: details only go to the server log. '''
        return cls(500, b'Internal Server Error', {
            'Content-Type': TEXT_CONTENT_TYPE,
            'Cache-Control': NO_CACHE,
        })

    @property
    def is_success(self):
        return self.status == 200


class SitemapProxy:
    ''' Fetch the upstream sitemap, transform it, and report the result. A
    single instance serves every request; no state is kept between them. '''

    def __init__(self, config_fn):
        '''
        Constructor.

        :param config_fn: A function that returns a fresh
            :class:`sitemap_proxy.config.SitemapConfig`. It is called once per
            request and may raise ``ConfigurationError``.
        '''
        self._config_fn = config_fn

    def __repr__(self):
        return '<SitemapProxy>'

    async def handle(self):
        '''
        Produce the transformed sitemap.

        Never raises, except for cancellation: any failure is logged and
        turned into a generic error response.

        :rtype: ProxyResponse
        '''
        start = trio.current_time()
        try:
            config = self._config_fn()
            body = await self.fetch(config.source_sitemap_url, config.timeout)
            document = transform(decode(body), config)
            xml = encode(document)
        except ConfigurationError as exc:
            logger.error('%r Configuration error: %s', self, exc)
            return ProxyResponse.failure()
        except UpstreamFetchError as exc:
            logger.error('%r Upstream sitemap failed: %s', self, exc)
            return ProxyResponse.failure()
        except Exception:
            logger.exception('%r Error processing sitemap', self)
            return ProxyResponse.failure()
        elapsed = trio.current_time() - start
        logger.info('%r Served sitemap (%d bytes) in %0.3fs', self, len(xml),
            elapsed)
        return ProxyResponse.success(xml)

    async def fetch(self, url, timeout=20):
        '''
        Download the raw sitemap.

        :param str url:
        :param float timeout: Total time allowed for the request, in seconds.
        :raises UpstreamFetchError: On a network error, timeout, or a non-2xx
            status.
        :rtype: bytes
        '''
        error = None
        async with trio_asyncio.open_loop():
            # Re-raised outside the loop, which would wrap it in a group.
            try:
                body = await self._fetch_asyncio(url, timeout)
            except UpstreamFetchError as exc:
                error = exc
        if error is not None:
            raise error
        return body

    @trio_asyncio.aio_as_trio
    async def _fetch_asyncio(self, url, timeout):
        '''
        A helper for ``fetch()`` that runs on the asyncio event loop, since
        aiohttp is an asyncio library.

        :param str url:
        :param float timeout:
        '''
        session_args = {
            'timeout': aiohttp.ClientTimeout(total=timeout),
            'headers': {'User-Agent': USER_AGENT},
        }
        try:
            async with aiohttp.ClientSession(**session_args) as session:
                async with session.get(url) as http_response:
                    if not 200 <= http_response.status < 300:
                        raise UpstreamFetchError('{} returned HTTP {} {}'
                            .format(url, http_response.status,
                            http_response.reason))
                    body = await http_response.read()
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            raise UpstreamFetchError('{} timed out'.format(url)) from None
        except aiohttp.ClientError as err:
            raise UpstreamFetchError('{}: {}: {}'.format(url,
                err.__class__.__name__, err)) from err
        logger.info('%r %d %s (%d bytes)', self, http_response.status, url,
            len(body))
        return body
