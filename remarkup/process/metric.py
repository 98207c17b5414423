"""
Element metric for attribute restoration.

This module provides the default distance function between two individual
HTML elements. It compares tag names, attributes and positions in the
flattened trees and returns how dissimilar the two elements are.
"""

import math
from typing import Callable, Iterable, Sequence

from lxml import html
from rapidfuzz.distance import Levenshtein

from remarkup.base import IDENTITY_ATTRIBUTES, SEMANTIC_ATTRIBUTES
from remarkup.process.filters import (AttributeRule, AttributeRuleSpec,
                                      matches_any, to_attribute_rules)

ElementMetric = Callable[
    [html.HtmlElement, html.HtmlElement, int, int, int, int], float
]

# Minimum distance for elements without a shared identity
BASE_DISTANCE = 5.0
TAG_MISMATCH_DISTANCE = 3.0
MISSING_ATTRIBUTE_DISTANCE = 1.0
VALUE_DISTANCE_FACTOR = 2.0
POSITION_DISTANCE_FACTOR = 2.0
POSITION_DISTANCE_OFFSET = 1.0


def value_distance(value1: str, value2: str) -> float:
    """
    Distance contribution of an attribute whose value differs.

    Grows with the logarithm of the edit distance, so a single edited
    character costs nothing and long divergent values saturate. Only called
    for unequal values, so the edit distance is at least 1.
    """
    return VALUE_DISTANCE_FACTOR * math.log(Levenshtein.distance(value1, value2))


def position_distance(index1: int, index2: int) -> float:
    offset = abs(index1 - index2)
    if offset == 0:
        return 0.0
    return POSITION_DISTANCE_FACTOR * math.log(offset) + POSITION_DISTANCE_OFFSET


class DefaultElementMetric:
    """
    The default element metric.

    Compares elements and their position in the flattened trees and returns
    a number that indicates how dissimilar the given elements are. Elements
    sharing the same value for any identity attribute have a distance of 0.
    Semantic attributes are ignored.

    Attributes:
        identity_attributes (tuple): Attribute names that force a match
        semantic_rules (tuple): Rules identifying semantic attributes
    """

    def __init__(
        self,
        identity_attributes: Iterable[str] = IDENTITY_ATTRIBUTES,
        semantic_attributes: Iterable[AttributeRuleSpec] = SEMANTIC_ATTRIBUTES,
    ) -> None:
        self.identity_attributes = tuple(identity_attributes)
        self.semantic_rules: Sequence[AttributeRule] = to_attribute_rules(
            semantic_attributes
        )

    def shares_identity(
        self, e1: html.HtmlElement, e2: html.HtmlElement
    ) -> bool:
        for name in self.identity_attributes:
            value1 = e1.get(name)
            if value1 is not None and value1 == e2.get(name):
                return True
        return False

    def __call__(
        self,
        e1: html.HtmlElement,
        e2: html.HtmlElement,
        e1_index: int,
        e2_index: int,
        e1_sibling_count: int,
        e2_sibling_count: int,
    ) -> float:
        """
        Compute the distance between two elements.

        Args:
            e1: Unmarked copy of the original element
            e2: Modified element
            e1_index: Index of e1 in the flattened original tree
            e2_index: Index of e2 in the flattened modified tree
            e1_sibling_count: Number of element children of e1's parent
            e2_sibling_count: Number of element children of e2's parent

        Returns:
            Non-negative distance, 0 for elements with a shared identity
        """
        if self.shares_identity(e1, e2):
            return 0.0

        distance = BASE_DISTANCE
        if e1.tag != e2.tag:
            distance += TAG_MISMATCH_DISTANCE

        for name in e1.attrib.keys():
            if name not in e2.attrib and not matches_any(
                self.semantic_rules, name, e1
            ):
                distance += MISSING_ATTRIBUTE_DISTANCE

        for name, value2 in e2.attrib.items():
            if matches_any(self.semantic_rules, name, e2):
                continue
            value1 = e1.get(name)
            if value1 is None:
                distance += MISSING_ATTRIBUTE_DISTANCE
            elif value1 != value2:
                distance += value_distance(value1, value2)

        return distance + position_distance(e1_index, e2_index)
