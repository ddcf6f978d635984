'''
Republish an upstream sitemap with some URLs removed, some added, and the
origin domain optionally rewritten.
'''
from .version import __version__
