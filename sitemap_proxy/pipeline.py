'''
Apply configured edits to a decoded sitemap.

The stages always run in the same order: remove, then add, then rewrite the
domain. A stage with nothing to do leaves the entries as they are.
'''
import logging

from yarl import URL

from .document import UrlEntry
from .pattern import matches_any


logger = logging.getLogger(__name__)


def remove_entries(entries, patterns):
    '''
    Drop entries whose location matches any of ``patterns``.

    Entries without a location are kept.

    :param list[UrlEntry] entries:
    :param tuple[str] patterns: Glob patterns.
    :rtype: list[UrlEntry]
    '''
    if not patterns:
        return entries
    kept = [entry for entry in entries
        if entry.loc is None or not matches_any(entry.loc, patterns)]
    logger.debug('Removed %d of %d URLs', len(entries) - len(kept),
        len(entries))
    return kept


def resolve_url(url, origin):
    ''' Prefix ``origin`` unless ``url`` already has a scheme and host. '''
    if URL(url).is_absolute():
        return url
    return origin + url


def add_entries(entries, urls, origin, namespace):
    '''
    Append a new entry for each URL, in order. Duplicates are not checked.

    :param list[UrlEntry] entries:
    :param tuple[str] urls: Absolute URLs, or paths relative to ``origin``.
    :param str origin:
    :param str namespace: Namespace for the new elements.
    :rtype: list[UrlEntry]
    '''
    if not urls:
        return entries
    logger.debug('Adding %d URLs', len(urls))
    return entries + [UrlEntry.create(resolve_url(url, origin), namespace)
        for url in urls]


def rewrite_domain(entries, origin, replacement):
    '''
    Replace the ``origin`` prefix of each location with ``replacement``.

    Locations that do not start with ``origin`` are left alone.

    :param list[UrlEntry] entries:
    :param str origin:
    :param str replacement:
    :rtype: list[UrlEntry]
    '''
    if not origin or not replacement:
        return entries
    count = 0
    for entry in entries:
        loc = entry.loc
        if loc is not None and loc.startswith(origin):
            entry.loc = replacement + loc[len(origin):]
            count += 1
    logger.debug('Rewrote %d URLs from %s to %s', count, origin, replacement)
    return entries


def transform(document, config):
    '''
    Run every stage over ``document``'s URL list.

    If the document has no URL list, it is returned without changes.

    :param sitemap_proxy.document.SitemapDocument document:
    :param sitemap_proxy.config.SitemapConfig config:
    :returns: The same document, with its URL list replaced.
    :rtype: sitemap_proxy.document.SitemapDocument
    '''
    if document.is_absent:
        logger.warning('Sitemap has no URL list: skipping transformation')
        return document

    entries = list(document.urls)
    entries = remove_entries(entries, config.remove_patterns)
    entries = add_entries(entries, config.add_urls, config.origin_domain,
        document.namespace)
    entries = rewrite_domain(entries, config.origin_domain,
        config.domain_replacement)
    document.urls = entries
    return document
