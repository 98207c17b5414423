"""
Subtree alignment and global reconciliation.

This module computes how dissimilar two element subtrees are, by matching
their children with a minimum-cost assignment and adding the element metric
of the subtree roots, and uses that distance to pair every element of an
original tree with an element of a modified tree.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from lxml import html
from scipy.optimize import linear_sum_assignment

from remarkup.base import ElementMatch
from remarkup.exceptions import ReMarkupInvariantError
from remarkup.process.filters import (AttributeRule, ElementFilter,
                                      matches_any, unmarkup_recurse)
from remarkup.process.html_utils import (clone_element, element_children,
                                         sibling_count)
from remarkup.process.metric import ElementMetric

logger = logging.getLogger(__name__)


def solve_assignment(cost_matrix: Sequence[Sequence[float]]) -> List[Tuple[int, int]]:
    """
    Find a minimum-cost one-to-one assignment of rows to columns.

    Non-square matrices are supported; the surplus rows or columns of the
    larger dimension are left unassigned.

    Args:
        cost_matrix: Rows x columns of non-negative costs

    Returns:
        List of (row, col) pairs, sorted by row
    """
    costs = np.asarray(cost_matrix, dtype=float)
    if costs.size == 0:
        return []
    rows, cols = linear_sum_assignment(costs)
    return [(int(row), int(col)) for row, col in zip(rows, cols)]


def index_elements(elements: Sequence[html.HtmlElement]) -> Dict[html.HtmlElement, int]:
    return {element: index for index, element in enumerate(elements)}


class SubtreeAligner:
    """
    Memoized subtree distance between an original and a modified tree.

    One aligner owns the distance table for a single reconciliation; it is
    not shared between calls.

    Attributes:
        original_elements (list): Flattened original tree
        modified_elements (list): Flattened modified tree
        element_filters (tuple): Filters producing the unmarked form
        element_metric (callable): Distance between two single elements
        nonexistent_child_distance (float): Penalty per unmatched child
    """

    def __init__(
        self,
        original_elements: Sequence[html.HtmlElement],
        modified_elements: Sequence[html.HtmlElement],
        element_filters: Sequence[ElementFilter],
        element_metric: ElementMetric,
        nonexistent_child_distance: float,
    ) -> None:
        self.original_elements = list(original_elements)
        self.modified_elements = list(modified_elements)
        self.element_filters = tuple(element_filters)
        self.element_metric = element_metric
        self.nonexistent_child_distance = nonexistent_child_distance

        self._original_index = index_elements(self.original_elements)
        self._modified_index = index_elements(self.modified_elements)
        self._distances: Dict[Tuple[int, int], float] = {}
        self._unmarked: Dict[int, html.HtmlElement] = {}

    def original_index(self, element: html.HtmlElement) -> int:
        try:
            return self._original_index[element]
        except KeyError:
            raise ReMarkupInvariantError(
                f'Element <{element.tag}> is not part of the original tree'
            ) from None

    def modified_index(self, element: html.HtmlElement) -> int:
        try:
            return self._modified_index[element]
        except KeyError:
            raise ReMarkupInvariantError(
                f'Element <{element.tag}> is not part of the modified tree'
            ) from None

    def unmarked(self, index: int) -> html.HtmlElement:
        """
        Return what an original element looks like after unmarking.

        The copy depends only on the original element, so it is built once
        per element and reused for every modified element it is compared to.
        """
        if index not in self._unmarked:
            clone = clone_element(self.original_elements[index])
            self._unmarked[index] = unmarkup_recurse(self.element_filters, clone)
        return self._unmarked[index]

    def child_distance(
        self, e1: html.HtmlElement, e2: html.HtmlElement
    ) -> float:
        children1 = element_children(e1)
        children2 = element_children(e2)

        total = 0.0
        if children1 and children2:
            child_matrix = [
                [self.align(c1, c2) for c2 in children2] for c1 in children1
            ]
            for ci, cj in solve_assignment(child_matrix):
                total += child_matrix[ci][cj]

        # Penalty for differing number of child elements
        total += abs(len(children1) - len(children2)) * self.nonexistent_child_distance
        return total

    def align(self, e1: html.HtmlElement, e2: html.HtmlElement) -> float:
        """
        Compute the distance between an original and a modified subtree.

        Args:
            e1: Element of the original tree
            e2: Element of the modified tree

        Returns:
            Non-negative subtree distance

        Raises:
            ReMarkupInvariantError: If an element is not part of its tree
        """
        e1i = self.original_index(e1)
        e2i = self.modified_index(e2)

        key = (e1i, e2i)
        if key in self._distances:
            return self._distances[key]

        distance = self.child_distance(e1, e2)
        distance += self.element_metric(
            self.unmarked(e1i), e2,
            e1i, e2i,
            sibling_count(e1), sibling_count(e2),
        )

        self._distances[key] = distance
        return distance

    def distance_matrix(
        self, cancel_check: Optional[Callable[[], None]] = None
    ) -> List[List[float]]:
        """
        Compute the distances between all original and modified elements.

        Args:
            cancel_check: Called before every cell; raises to abort

        Returns:
            Matrix indexed by original index, then modified index
        """
        matrix = []
        for e1 in self.original_elements:
            row = []
            for e2 in self.modified_elements:
                if cancel_check is not None:
                    cancel_check()
                row.append(self.align(e1, e2))
            matrix.append(row)
        logger.debug(f'Computed {len(self._distances)} subtree distances')
        return matrix


def copy_attributes(
    src: html.HtmlElement,
    dst: html.HtmlElement,
    semantic_rules: Sequence[AttributeRule],
) -> None:
    """
    Copy all attributes from src to dst, except semantic ones.

    Attributes that are semantic on either element keep the value they have
    on dst (or stay absent). The resulting attributes follow src's order,
    followed by the attributes only dst has.

    Args:
        src: Original element
        dst: Modified element, updated in place
        semantic_rules: Rules identifying semantic attributes
    """
    dst_attributes = dict(dst.attrib.items())

    merged = []
    for name, value in src.attrib.items():
        if matches_any(semantic_rules, name, src) or matches_any(
            semantic_rules, name, dst
        ):
            if name in dst_attributes:
                merged.append((name, dst_attributes.pop(name)))
        else:
            dst_attributes.pop(name, None)
            merged.append((name, value))
    merged.extend(dst_attributes.items())

    dst.attrib.clear()
    for name, value in merged:
        dst.set(name, value)


def reconcile_trees(
    aligner: SubtreeAligner,
    cancel_check: Optional[Callable[[], None]] = None,
) -> List[ElementMatch]:
    """
    Pair original and modified elements with one global assignment.

    Args:
        aligner: Aligner over the two flattened trees
        cancel_check: Called before every top-level matrix cell

    Returns:
        The matched pairs with their subtree distances
    """
    matrix = aligner.distance_matrix(cancel_check)
    return [
        ElementMatch(original_index=ci, modified_index=cj, cost=matrix[ci][cj])
        for ci, cj in solve_assignment(matrix)
    ]
