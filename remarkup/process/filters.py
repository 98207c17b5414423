"""
Attribute rules and element filters.

This module provides the rule types used to decide whether an attribute is
preserved or semantic, and the element filters that strip attributes from
an element tree to produce its unmarked form.
"""

import re
from typing import Callable, Iterable, List, Sequence, Tuple, Union

from lxml import html

from remarkup.exceptions import ReMarkupConfigError
from remarkup.process.html_utils import element_children, is_element

ElementFilter = Callable[[html.HtmlElement], None]
AttributePredicate = Callable[[str, html.HtmlElement], bool]
AttributeRuleSpec = Union[str, 're.Pattern', AttributePredicate, 'AttributeRule']

# Only \t, \n, \r and space; other spaces (e.g. nbsp) may carry meaning
COLLAPSIBLE_SPACE = re.compile(r'[\t\n\r ]+')
LEADING_SPACE = re.compile(r'^[\t\n\r ]+')
TRAILING_SPACE = re.compile(r'[\t\n\r ]+$')


class AttributeRule:
    """Base class for rules matching an attribute by name and owner element."""

    def matches(self, name: str, element: html.HtmlElement) -> bool:
        raise NotImplementedError


class ExactAttributeRule(AttributeRule):
    """Match one attribute name exactly."""

    def __init__(self, name: str):
        self.name = name

    def matches(self, name: str, element: html.HtmlElement) -> bool:
        return name == self.name

    def __repr__(self) -> str:
        return f'ExactAttributeRule({self.name!r})'


class PatternAttributeRule(AttributeRule):
    """Match attribute names against a regular expression."""

    def __init__(self, pattern: 're.Pattern'):
        self.pattern = pattern

    def matches(self, name: str, element: html.HtmlElement) -> bool:
        return self.pattern.search(name) is not None

    def __repr__(self) -> str:
        return f'PatternAttributeRule({self.pattern.pattern!r})'


class PredicateAttributeRule(AttributeRule):
    """Match attributes with a callback taking the name and owner element."""

    def __init__(self, predicate: AttributePredicate):
        self.predicate = predicate

    def matches(self, name: str, element: html.HtmlElement) -> bool:
        return bool(self.predicate(name, element))

    def __repr__(self) -> str:
        return f'PredicateAttributeRule({self.predicate!r})'


def to_attribute_rule(spec: AttributeRuleSpec) -> AttributeRule:
    """
    Convert a rule specification to an AttributeRule.

    Args:
        spec: An attribute name, a compiled regular expression, a predicate
              called as predicate(name, element), or an AttributeRule

    Returns:
        The corresponding AttributeRule

    Raises:
        ReMarkupConfigError: If the specification type is not supported
    """
    if isinstance(spec, AttributeRule):
        return spec
    if isinstance(spec, str):
        return ExactAttributeRule(spec)
    if isinstance(spec, re.Pattern):
        return PatternAttributeRule(spec)
    if callable(spec):
        return PredicateAttributeRule(spec)
    raise ReMarkupConfigError(f'Unsupported attribute rule type: {type(spec)}')


def to_attribute_rules(specs: Iterable[AttributeRuleSpec]) -> Tuple[AttributeRule, ...]:
    return tuple(to_attribute_rule(spec) for spec in specs)


def matches_any(
    rules: Sequence[AttributeRule], name: str, element: html.HtmlElement
) -> bool:
    return any(rule.matches(name, element) for rule in rules)


def default_element_filter(
    preserve_attributes: Iterable[AttributeRuleSpec],
) -> ElementFilter:
    """
    Create an element filter that removes most attributes.

    Every rule is evaluated against the element as it was before the filter
    ran, so predicates see the complete attribute set.

    Args:
        preserve_attributes: Names, regular expressions and/or predicates
                             identifying the attributes to keep

    Returns:
        An element filter that removes all attributes but the preserved ones
    """
    rules = to_attribute_rules(preserve_attributes)

    def element_filter(element: html.HtmlElement) -> None:
        to_remove = [
            name for name in element.attrib.keys()
            if not matches_any(rules, name, element)
        ]
        for name in to_remove:
            del element.attrib[name]

    return element_filter


def strip_spaces(element: html.HtmlElement) -> None:
    """
    Normalize whitespace in the text owned directly by an element.

    Collapses runs of tabs, newlines, carriage returns and spaces into a
    single space, and trims the whitespace at the start of the first child
    node and at the end of the last child node when those are text.

    Args:
        element: HTML element whose text and child tails are normalized
    """
    # Child nodes as (owner, field) slots, in document order
    nodes: List[Tuple[html.HtmlElement, str]] = []
    if element.text:
        nodes.append((element, 'text'))
    for child in element:
        nodes.append((child, None))
        if child.tail:
            nodes.append((child, 'tail'))

    for i, (owner, field) in enumerate(nodes):
        if field is None:
            continue
        data = COLLAPSIBLE_SPACE.sub(' ', getattr(owner, field))
        if i == 0:
            data = LEADING_SPACE.sub('', data)
        if i == len(nodes) - 1:
            data = TRAILING_SPACE.sub('', data)
        setattr(owner, field, data)


def apply_element_filters(
    element_filters: Sequence[ElementFilter], element: html.HtmlElement
) -> None:
    for element_filter in element_filters:
        element_filter(element)


def unmarkup_recurse(
    element_filters: Sequence[ElementFilter], element: html.HtmlElement
) -> html.HtmlElement:
    """
    Recursively apply the element filters to an element and all its children.

    Filters run on a node before its children are visited.

    Args:
        element_filters: Filters to apply, in order
        element: The target element

    Returns:
        The target element, modified in place
    """
    if is_element(element):
        apply_element_filters(element_filters, element)
    for child in element_children(element):
        unmarkup_recurse(element_filters, child)
    return element
