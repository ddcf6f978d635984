'''
Match URLs against glob-style patterns.

A pattern without any ``*`` must equal the URL exactly. Otherwise ``**``
matches any run of characters (including ``/``) and ``*`` matches one or more
characters inside a single path segment. Everything else is literal, and the
pattern must account for the whole URL.
'''
import functools
import logging
import re


logger = logging.getLogger(__name__)
_ANY_SEGMENTS = '.*'
_ONE_SEGMENT = '[^/]+'


def glob_to_regex(pattern):
    '''
    Translate a glob pattern into regular expression source.

    Literal text is escaped before the wildcards are substituted back in, so
    the escaping step never touches a wildcard.

    :param str pattern:
    :rtype: str
    '''
    pieces = list()
    for run in pattern.split('**'):
        literals = [re.escape(literal) for literal in run.split('*')]
        pieces.append(_ONE_SEGMENT.join(literals))
    return _ANY_SEGMENTS.join(pieces)


@functools.lru_cache(maxsize=1024)
def compile_pattern(pattern):
    '''
    Compile a glob pattern.

    :param str pattern:
    :returns: A compiled regex, or None if the pattern could not be compiled.
    '''
    try:
        return re.compile(glob_to_regex(pattern))
    except re.error as exc:
        logger.warning('Invalid pattern %r (never matches): %s', pattern, exc)
        return None


def matches(url, pattern):
    '''
    Return True if ``url`` matches ``pattern``.

    :param str url:
    :param str pattern:
    :rtype: bool
    '''
    if '*' not in pattern:
        return url == pattern
    pattern_re = compile_pattern(pattern)
    if pattern_re is None:
        return False
    return pattern_re.fullmatch(url) is not None


def matches_any(url, patterns):
    '''
    Return True if ``url`` matches at least one of ``patterns``.

    :param str url:
    :param patterns: Glob patterns.
    :type patterns: iterable[str]
    :rtype: bool
    '''
    return any(matches(url, pattern) for pattern in patterns)
