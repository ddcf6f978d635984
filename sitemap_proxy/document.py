'''
An in-memory sitemap, and the codec that converts it to and from XML.

Only ``<loc>`` is interpreted. Every other child of a ``<url>`` element, along
with its attributes and any extension elements, is carried through as is.
'''
import copy
import logging
import re

from lxml import etree


logger = logging.getLogger(__name__)
SITEMAP_NS = 'http://www.sitemaps.org/schemas/sitemap/0.9'
XML_DECLARATION = re.compile(r'^\s*<\?xml[^>]*\?>')


def _local_name(element):
    ''' Return an element's tag without its namespace, or None for comments,
    entities, and processing instructions. '''
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def _qualify(namespace, name):
    if namespace:
        return '{{{}}}{}'.format(namespace, name)
    return name


def _is_empty(element):
    return (element.text is None or not element.text.strip()) and \
        not element.attrib and len(element) == 0


def _prune_empty(element):
    ''' Recursively remove descendants that have no text, attributes, or
    children. '''
    for child in list(element):
        if not isinstance(child.tag, str):
            continue
        _prune_empty(child)
        if _is_empty(child):
            element.remove(child)


class UrlEntry:
    ''' One ``<url>`` element in a sitemap. '''
    def __init__(self, element):
        '''
        Constructor.

        :param lxml.etree._Element element: A ``<url>`` element.
        '''
        self._element = element

    def __repr__(self):
        return '<UrlEntry loc={!r}>'.format(self.loc)

    @classmethod
    def create(cls, loc, namespace=SITEMAP_NS):
        '''
        Make a new entry that only has a location.

        :param str loc:
        :param str namespace: The sitemap namespace, or None for a document
            that does not declare one.
        :rtype: UrlEntry
        '''
        nsmap = {None: namespace} if namespace else None
        element = etree.Element(_qualify(namespace, 'url'), nsmap=nsmap)
        loc_element = etree.SubElement(element, _qualify(namespace, 'loc'))
        loc_element.text = loc
        return cls(element)

    @property
    def element(self):
        return self._element

    def _find(self, name):
        for child in self._element:
            if _local_name(child) == name:
                return child
        return None

    def get(self, name, default=None):
        '''
        Return the text of the first field called ``name``.

        :param str name: A tag name without namespace, e.g. ``lastmod``.
        '''
        child = self._find(name)
        if child is None or child.text is None:
            return default
        return child.text.strip()

    @property
    def loc(self):
        '''
        The entry's URL, or None if it has no non-empty ``<loc>``.

        :rtype: str
        '''
        return self.get('loc') or None

    @loc.setter
    def loc(self, value):
        child = self._find('loc')
        if child is None:
            namespace = etree.QName(self._element).namespace
            child = etree.Element(_qualify(namespace, 'loc'))
            self._element.insert(0, child)
        child.text = value


class SitemapDocument:
    '''
    A decoded sitemap.

    ``urls`` is None when the document is not a ``<urlset>``. Such a document
    is still encoded back to XML unchanged.
    '''
    def __init__(self, root, urls):
        '''
        Constructor.

        :param lxml.etree._Element root: The root element, with its ``<url>``
            children detached.
        :param urls: The entries, or None if the document has no URL list.
        :type urls: list[UrlEntry]
        '''
        self.root = root
        self.urls = urls

    def __repr__(self):
        count = 'absent' if self.urls is None else len(self.urls)
        return '<SitemapDocument root={} urls={}>'.format(
            _local_name(self.root), count)

    @property
    def is_absent(self):
        return self.urls is None

    @property
    def namespace(self):
        ''' The namespace of the root element, or None. '''
        return etree.QName(self.root).namespace


def decode(xml):
    '''
    Parse sitemap XML.

    The URL list is always a list, even when there is exactly one ``<url>``.

    :param xml: XML text. Bytes are decoded using the document's own
        encoding declaration. Text is already decoded, so its declaration is
        ignored.
    :type xml: bytes or str
    :raises lxml.etree.XMLSyntaxError: If the text is not well-formed XML.
    :rtype: SitemapDocument
    '''
    if isinstance(xml, str):
        # lxml refuses text that still declares an encoding.
        xml = XML_DECLARATION.sub('', xml, count=1)
    parser = etree.XMLParser(
        remove_blank_text=True,
        remove_comments=True,
        remove_pis=True,
        resolve_entities=False,
    )
    root = etree.fromstring(xml, parser)

    if _local_name(root) != 'urlset':
        logger.warning('Sitemap root is <%s> instead of <urlset>: passing it '
            'through unchanged', _local_name(root))
        return SitemapDocument(root, None)

    urls = list()
    for child in list(root):
        if _local_name(child) == 'url':
            root.remove(child)
            urls.append(UrlEntry(child))
    logger.debug('Decoded sitemap with %d URLs', len(urls))
    return SitemapDocument(root, urls)


def encode(document):
    '''
    Serialize a sitemap to pretty-printed XML.

    Empty fields are left out, and so are entries that end up with no fields.

    :param SitemapDocument document:
    :rtype: bytes
    '''
    root = copy.deepcopy(document.root)
    for entry in document.urls or ():
        element = copy.deepcopy(entry.element)
        _prune_empty(element)
        if _is_empty(element):
            logger.debug('Omitting empty entry from sitemap')
            continue
        root.append(element)
    return etree.tostring(root, pretty_print=True, xml_declaration=True,
        encoding='UTF-8')
