import configparser
from dataclasses import dataclass
import os
import pathlib


_root = pathlib.Path(__file__).resolve().parent.parent
ORIGIN_DOMAIN_VAR = 'ORIGIN_DOMAIN'


class ConfigurationError(Exception):
    ''' A required configuration value is missing. '''


def get_path(relpath):
    ''' Get absolute path to a project-relative path. '''
    return _root / relpath


def get_config():
    '''
    Read the application configuration from the standard configuration files.

    :rtype: ConfigParser
    '''
    config_dir = get_path("conf")
    config_files = [
        config_dir / "system.ini",
        config_dir / "local.ini",
    ]
    config = configparser.ConfigParser()
    config.optionxform = str
    config.read(config_files)
    return config


def get_origin_domain(environ=None):
    '''
    Return the origin domain from the environment, without a trailing slash.

    :param dict environ: Defaults to ``os.environ``.
    :raises ConfigurationError: If the variable is missing or empty.
    :rtype: str
    '''
    if environ is None:
        environ = os.environ
    origin = environ.get(ORIGIN_DOMAIN_VAR, '').strip().rstrip('/')
    if not origin:
        raise ConfigurationError('{} environment variable is not set'
            .format(ORIGIN_DOMAIN_VAR))
    return origin


def _get_list(section, key):
    ''' Split a multi-line ini value into its non-blank lines. '''
    raw = section.get(key, '')
    return [line.strip() for line in raw.splitlines() if line.strip()]


def _resolve_pattern(pattern, origin):
    ''' Patterns starting at the path root are relative to ``origin``. '''
    if pattern.startswith('/'):
        return origin + pattern
    return pattern


@dataclass(frozen=True)
class SitemapConfig:
    ''' Settings for transforming one sitemap. '''
    source_sitemap_url: str
    origin_domain: str
    remove_patterns: tuple = ()
    add_urls: tuple = ()
    domain_replacement: str = ''
    timeout: float = 20.0

    @classmethod
    def from_config(cls, config, environ=None):
        '''
        Resolve settings from the ini configuration and the environment.

        :param configparser.ConfigParser config:
        :param dict environ: Defaults to ``os.environ``.
        :raises ConfigurationError: If the origin domain is not set.
        :rtype: SitemapConfig
        '''
        origin = get_origin_domain(environ)
        if config.has_section('sitemap'):
            section = config['sitemap']
        else:
            section = {}

        source_url = section.get('source_url', '').strip() or \
            '{}/sitemap.xml'.format(origin)
        remove_patterns = tuple(_resolve_pattern(pattern, origin)
            for pattern in _get_list(section, 'remove_patterns'))
        add_urls = tuple(_get_list(section, 'add_urls'))
        replacement = section.get('domain_replacement', '').strip().rstrip('/')
        timeout = float(section.get('timeout', '') or 20)

        return cls(
            source_sitemap_url=source_url,
            origin_domain=origin,
            remove_patterns=remove_patterns,
            add_urls=add_urls,
            domain_replacement=replacement,
            timeout=timeout,
        )
