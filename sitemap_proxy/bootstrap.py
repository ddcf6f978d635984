from functools import partial
import logging

import trio

from .config import SitemapConfig
from .proxy import SitemapProxy
from .server import Server


logger = logging.getLogger(__name__)


class Bootstrap:
    ''' Main class for bootstrapping the sitemap proxy. '''
    def __init__(self, config, args):
        '''
        Constructor.

        :param config: Output of config parser.
        :param args: Output of argparse.
        '''
        self._args = args
        self._config = config

    def run(self):
        ''' Run the main task on the event loop. '''
        logger.info('Sitemap proxy is starting...')
        try:
            trio.run(self._main,
                restrict_keyboard_interrupt_to_checkpoints=True)
        except KeyboardInterrupt:
            logger.warning('Quitting due to KeyboardInterrupt')
        logger.info('Sitemap proxy has stopped.')

    def _make_server(self):
        '''
        Create the server and the proxy behind it.

        The sitemap settings are resolved again for every request, so a
        missing ``ORIGIN_DOMAIN`` fails requests rather than startup.

        :rtype: Server
        '''
        proxy = SitemapProxy(partial(SitemapConfig.from_config, self._config))
        if self._config.has_section('server'):
            base_path = self._config['server'].get('base_path', '').strip()
        else:
            base_path = ''
        return Server(self._args.ip, self._args.port, proxy, base_path)

    async def _main(self):
        '''
        The main task.

        :returns: This function runs until cancelled.
        '''
        server = self._make_server()
        async with trio.open_nursery() as nursery:
            await nursery.start(server.run, name='Server')
