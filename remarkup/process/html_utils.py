"""
HTML utility functions for fragment conversion.

This module provides helper functions to convert between HTML fragment
strings and lxml HtmlElement trees, and to walk element-only views of
those trees.
"""

import copy
import re
from typing import List

from lxml import etree, html

from remarkup.exceptions import ReMarkupParseError

FRAGMENT_TEMPLATE = '<html><body>%s</body></html>'

# Characters libxml2 cannot hold in a tree; the HTML parser silently drops them
INVALID_CHARACTERS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f]')


def _build_parser() -> html.HTMLParser:
    return html.HTMLParser(
        collect_ids=False,  # Don't collect ID attributes for performance
        remove_blank_text=False,  # Whitespace is part of the round trip
        remove_comments=False,  # Comments are round-tripped, never aligned
        remove_pis=False,
    )


def fragment_to_body(fragment: str) -> html.HtmlElement:
    """
    Convert an HTML fragment string to an lxml body element.

    The fragment is wrapped in a synthetic document so that leading text and
    multiple top-level elements are kept. The returned <body> is the
    container of the fragment; it is not part of the fragment itself.

    Args:
        fragment: HTML fragment string to parse

    Returns:
        The <body> HtmlElement containing the parsed fragment

    Raises:
        ReMarkupParseError: If the fragment holds control characters or
            the parser rejects it
    """
    invalid = INVALID_CHARACTERS.search(fragment)
    if invalid is not None:
        raise ReMarkupParseError(
            'Failed to parse HTML fragment: control character '
            f'{invalid.group()!r} at position {invalid.start()}'
        )

    try:
        root = html.document_fromstring(
            FRAGMENT_TEMPLATE % fragment, parser=_build_parser()
        )
    except (etree.ParserError, etree.XMLSyntaxError, ValueError) as e:
        raise ReMarkupParseError(f'Failed to parse HTML fragment: {e}') from e

    body = root.find('body')
    if body is None:
        # Fragments that consist of head-only content (e.g. a lone <title>)
        body = etree.SubElement(root, 'body')
    return body


def body_to_fragment(body: html.HtmlElement) -> str:
    """
    Convert a fragment container back to an HTML fragment string.

    Serializes the container and strips its own start and end tag, which
    yields the inner HTML of the fragment.

    Args:
        body: Container element returned by fragment_to_body

    Returns:
        Inner HTML of the container
    """
    html_str = html.tostring(
        body, method='html', encoding='unicode', with_tail=False
    )
    start = html_str.index('>') + 1
    end = html_str.rindex('</')
    return html_str[start:end]


def is_element(node) -> bool:
    """Comments and processing instructions carry a non-string tag."""
    return isinstance(node.tag, str)


def element_children(element: html.HtmlElement) -> List[html.HtmlElement]:
    return [child for child in element if is_element(child)]


def flatten_elements(body: html.HtmlElement) -> List[html.HtmlElement]:
    """
    Flatten a fragment into its elements in document order.

    The container itself is excluded; only its descendants are returned.
    """
    return [node for node in body.iterdescendants() if is_element(node)]


def sibling_count(element: html.HtmlElement) -> int:
    """
    Count the element children of an element's parent.

    Detached elements count as their own single sibling.
    """
    parent = element.getparent()
    if parent is None:
        return 1
    return len(element_children(parent))


def clone_element(element: html.HtmlElement) -> html.HtmlElement:
    """
    Deep copy an element into a new, detached subtree.

    The tail text belongs to the parent's content and is dropped.
    """
    clone = copy.deepcopy(element)
    clone.tail = None
    return clone
