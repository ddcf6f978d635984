import configparser

import pytest

import sitemap_proxy.config
from sitemap_proxy.config import (
    ConfigurationError,
    get_origin_domain,
    SitemapConfig,
)


SYSTEM_INI = '''[server]
base_path =

[sitemap]
source_url =
remove_patterns =
add_urls =
domain_replacement =
timeout = 20'''


LOCAL_INI = '''[sitemap]
remove_patterns =
    /work/*
    https://o.com/blog/**

    */drafts/*
add_urls =
    /work/project-2
    https://elsewhere.example/page
domain_replacement = https://n.com/
timeout = 5'''


def make_config(*texts):
    config = configparser.ConfigParser()
    config.optionxform = str
    for text in texts:
        config.read_string(text)
    return config


def test_get_config(tmp_path, monkeypatch):
    # Point the module's private _root variable at our temp directory.
    monkeypatch.setattr(sitemap_proxy.config, '_root', tmp_path)

    # Create temp configuration files.
    config_dir = tmp_path / 'conf'
    config_dir.mkdir()

    with (config_dir / 'local.ini').open('w') as f:
        f.write(LOCAL_INI)

    with (config_dir / 'system.ini').open('w') as f:
        f.write(SYSTEM_INI)

    # Read configuration.
    config = sitemap_proxy.config.get_config()
    assert config['sitemap']['timeout'] == '5'
    assert config['sitemap']['source_url'] == ''
    assert config['server']['base_path'] == ''


def test_origin_domain_is_required():
    with pytest.raises(ConfigurationError):
        get_origin_domain({})
    with pytest.raises(ConfigurationError):
        get_origin_domain({'ORIGIN_DOMAIN': '  '})


def test_origin_domain_trailing_slash():
    assert get_origin_domain({'ORIGIN_DOMAIN': 'https://o.com/'}) == \
        'https://o.com'


def test_defaults():
    config = SitemapConfig.from_config(make_config(SYSTEM_INI),
        {'ORIGIN_DOMAIN': 'https://o.com'})
    assert config.source_sitemap_url == 'https://o.com/sitemap.xml'
    assert config.origin_domain == 'https://o.com'
    assert config.remove_patterns == ()
    assert config.add_urls == ()
    assert config.domain_replacement == ''
    assert config.timeout == 20.0


def test_missing_sections():
    config = SitemapConfig.from_config(make_config(),
        {'ORIGIN_DOMAIN': 'https://o.com'})
    assert config.source_sitemap_url == 'https://o.com/sitemap.xml'
    assert config.timeout == 20.0


def test_overrides():
    config = SitemapConfig.from_config(make_config(SYSTEM_INI, LOCAL_INI),
        {'ORIGIN_DOMAIN': 'https://o.com'})
    assert config.remove_patterns == (
        'https://o.com/work/*',
        'https://o.com/blog/**',
        '*/drafts/*',
    )
    assert config.add_urls == (
        '/work/project-2',
        'https://elsewhere.example/page',
    )
    assert config.domain_replacement == 'https://n.com'
    assert config.timeout == 5.0


def test_source_url_override():
    config = SitemapConfig.from_config(
        make_config('[sitemap]\nsource_url = https://cdn.example/sm.xml'),
        {'ORIGIN_DOMAIN': 'https://o.com'})
    assert config.source_sitemap_url == 'https://cdn.example/sm.xml'


def test_missing_origin_fails_resolution():
    with pytest.raises(ConfigurationError):
        SitemapConfig.from_config(make_config(SYSTEM_INI), {})


def test_config_is_immutable():
    config = SitemapConfig.from_config(make_config(SYSTEM_INI),
        {'ORIGIN_DOMAIN': 'https://o.com'})
    with pytest.raises(AttributeError):
        config.origin_domain = 'https://n.com'
