"""
Main API module for the ReMarkup attribute restoration system.

This module provides the ReMarkup class, which removes attributes from HTML
fragments and re-adds them later, possibly on a modified (e.g. translated)
HTML fragment.
"""

import logging
import numbers
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Union

from remarkup.base import (IDENTITY_ATTRIBUTES, NONEXISTENT_CHILD_DISTANCE,
                           RESERVED_ATTRIBUTE_PATTERN, SEMANTIC_ATTRIBUTES,
                           ElementMatch, ReMarkupInput, ReMarkupOutput,
                           is_button_type)
from remarkup.exceptions import (ReMarkupCancelledError, ReMarkupConfigError,
                                 ReMarkupTypeError)
from remarkup.process.align import (SubtreeAligner, copy_attributes,
                                    reconcile_trees)
from remarkup.process.filters import (ElementFilter, default_element_filter,
                                      to_attribute_rules, unmarkup_recurse)
from remarkup.process.html_utils import (body_to_fragment, flatten_elements,
                                         fragment_to_body)
from remarkup.process.metric import DefaultElementMetric

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CONFIG_KEYS = {
    'element_filters',
    'additional_element_filters',
    'identity_attributes',
    'semantic_attributes',
    'nonexistent_child_distance',
    'raw_element_metric',
    'timeout',
    'raise_errors',
}


class ReMarkup:
    """
    Removes attributes from HTML fragments and restores them later.

    This class provides both halves of the workflow:
    1. un_markup: strip most attributes so a human can edit the fragment
    2. re_markup: match the elements of the edited fragment against the
       original one and copy the original attributes back

    The configuration is fixed at construction time.

    Attributes:
        element_filters (tuple): Filters applied by un_markup
        identity_attributes (tuple): Attributes whose equal values force a match
        semantic_rules (tuple): Rules identifying semantic attributes, which
            are neither scored nor copied
        nonexistent_child_distance (float): Penalty for a child element
            present in only one of two compared subtrees
        raw_element_metric (callable): Distance between two single elements
        timeout (float): Optional time limit in seconds for one re_markup call
        raise_errors (bool): Whether process re-raises per-item failures
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize ReMarkup instance.

        Args:
            config: Optional configuration dictionary, see CONFIG_KEYS

        Raises:
            ReMarkupConfigError: When configuration is invalid
        """
        self.config = self._validate_config(config)

        self.identity_attributes = tuple(
            self.config.get('identity_attributes', IDENTITY_ATTRIBUTES)
        )
        semantic_attributes = tuple(
            self.config.get('semantic_attributes', SEMANTIC_ATTRIBUTES)
        )
        self.semantic_rules = to_attribute_rules(semantic_attributes)

        element_filters = self.config.get('element_filters')
        if element_filters is None:
            element_filters = [
                default_element_filter(
                    ['id', RESERVED_ATTRIBUTE_PATTERN, is_button_type]
                    + list(self.identity_attributes)
                    + list(self.semantic_rules)
                )
            ]
        self.element_filters = tuple(element_filters) + tuple(
            self.config.get('additional_element_filters', ())
        )

        self.nonexistent_child_distance = self.config.get(
            'nonexistent_child_distance', NONEXISTENT_CHILD_DISTANCE
        )
        self.raw_element_metric = self.config.get('raw_element_metric')
        if self.raw_element_metric is None:
            self.raw_element_metric = DefaultElementMetric(
                self.identity_attributes, self.semantic_rules
            )
        self.timeout = self.config.get('timeout')
        self.raise_errors = self.config.get('raise_errors', False)

    def _validate_config(
        self, config: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Validate configuration parameters.

        Args:
            config: Configuration dictionary to validate

        Returns:
            Validated configuration dictionary (copy)

        Raises:
            ReMarkupConfigError: When configuration is invalid
        """
        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ReMarkupConfigError('Configuration must be a dictionary')

        unknown = set(config) - CONFIG_KEYS
        if unknown:
            raise ReMarkupConfigError(
                f'Unknown configuration keys: {sorted(unknown)}'
            )

        for key in ('element_filters', 'additional_element_filters'):
            filters = config.get(key)
            if filters is None:
                continue
            if isinstance(filters, (str, bytes)) or not all(
                callable(f) for f in filters
            ):
                raise ReMarkupConfigError(f'{key} must be a list of callables')

        identity_attributes = config.get('identity_attributes')
        if identity_attributes is not None and (
            isinstance(identity_attributes, str)
            or not all(isinstance(name, str) for name in identity_attributes)
        ):
            raise ReMarkupConfigError(
                'identity_attributes must be a list of attribute names'
            )

        semantic_attributes = config.get('semantic_attributes')
        if isinstance(semantic_attributes, str):
            raise ReMarkupConfigError(
                'semantic_attributes must be a list of attribute rules'
            )

        distance = config.get('nonexistent_child_distance', NONEXISTENT_CHILD_DISTANCE)
        if (
            not isinstance(distance, numbers.Real)
            or isinstance(distance, bool)
            or distance < 0
        ):
            raise ReMarkupConfigError(
                'nonexistent_child_distance must be a non-negative number'
            )

        metric = config.get('raw_element_metric')
        if metric is not None and not callable(metric):
            raise ReMarkupConfigError('raw_element_metric must be callable')

        timeout = config.get('timeout')
        if timeout is not None and (
            not isinstance(timeout, numbers.Real) or timeout <= 0
        ):
            raise ReMarkupConfigError('timeout must be a positive number')

        return config.copy()

    def with_element_filter(self, element_filter: ElementFilter) -> 'ReMarkup':
        """
        Return a new ReMarkup with one more element filter appended.

        Args:
            element_filter: The element filter

        Returns:
            New ReMarkup instance; this instance is left unchanged
        """
        if not callable(element_filter):
            raise ReMarkupConfigError('element filter must be callable')
        config = self.config.copy()
        config['element_filters'] = list(self.element_filters) + [element_filter]
        config.pop('additional_element_filters', None)
        return ReMarkup(config)

    @staticmethod
    def _check_fragment(fragment: Any, name: str) -> None:
        if not isinstance(fragment, str):
            raise ReMarkupTypeError(
                f'{name} must be a string, got {type(fragment)}'
            )

    def un_markup(self, original: str) -> str:
        """
        Apply the element filters to an HTML fragment.

        Args:
            original: The target HTML fragment

        Returns:
            The HTML fragment with all non-preserved attributes removed

        Raises:
            ReMarkupTypeError: If the fragment is not a string
            ReMarkupParseError: If the fragment cannot be parsed
        """
        self._check_fragment(original, 'original')
        body = fragment_to_body(original)
        unmarkup_recurse(self.element_filters, body)
        return body_to_fragment(body)

    def _cancel_check(
        self, cancel_event: Optional[threading.Event]
    ) -> Optional[Callable[[], None]]:
        if cancel_event is None and self.timeout is None:
            return None

        deadline = None
        if self.timeout is not None:
            deadline = time.monotonic() + self.timeout

        def cancel_check() -> None:
            if cancel_event is not None and cancel_event.is_set():
                raise ReMarkupCancelledError('Reconciliation was cancelled')
            if deadline is not None and time.monotonic() > deadline:
                raise ReMarkupCancelledError(
                    f'Reconciliation exceeded the timeout of {self.timeout}s'
                )

        return cancel_check

    def _match(self, original_body, modified_body, cancel_event):
        original_elements = flatten_elements(original_body)
        modified_elements = flatten_elements(modified_body)

        if len(original_elements) == 0 or len(modified_elements) == 0:
            return original_elements, modified_elements, []

        logger.debug(
            f'Aligning {len(original_elements)} original elements '
            f'with {len(modified_elements)} modified elements'
        )
        aligner = SubtreeAligner(
            original_elements,
            modified_elements,
            self.element_filters,
            self.raw_element_metric,
            self.nonexistent_child_distance,
        )
        matches = reconcile_trees(aligner, self._cancel_check(cancel_event))
        return original_elements, modified_elements, matches

    def match_elements(
        self,
        original: str,
        modified: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[ElementMatch]:
        """
        Compute the element pairs re_markup would copy attributes across.

        Indices refer to the document-order element lists of each fragment.

        Args:
            original: The original HTML fragment
            modified: The modified HTML fragment
            cancel_event: Optional event that aborts the computation when set

        Returns:
            List of ElementMatch objects, sorted by original index
        """
        self._check_fragment(original, 'original')
        self._check_fragment(modified, 'modified')
        _, _, matches = self._match(
            fragment_to_body(original), fragment_to_body(modified), cancel_event
        )
        return matches

    def re_markup(
        self,
        original: str,
        modified: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """
        Re-add attributes from an original HTML fragment to a modified one.

        Args:
            original: The original HTML fragment, including all attributes
            modified: The target HTML fragment
            cancel_event: Optional event that aborts the computation when set

        Returns:
            The modified HTML fragment with the attributes of the matching
            original elements added; the modified fragment unchanged if
            either fragment contains no elements

        Raises:
            ReMarkupTypeError: If a fragment is not a string
            ReMarkupParseError: If a fragment cannot be parsed
            ReMarkupCancelledError: If cancelled or timed out
        """
        self._check_fragment(original, 'original')
        self._check_fragment(modified, 'modified')

        original_body = fragment_to_body(original)
        modified_body = fragment_to_body(modified)
        original_elements, modified_elements, matches = self._match(
            original_body, modified_body, cancel_event
        )
        if not matches:
            return modified

        for match in matches:
            copy_attributes(
                original_elements[match.original_index],
                modified_elements[match.modified_index],
                self.semantic_rules,
            )

        return body_to_fragment(modified_body)

    def _normalize_input(
        self,
        input_data: Union[ReMarkupInput, dict, List[Union[ReMarkupInput, dict]]],
    ) -> List[ReMarkupInput]:
        """
        Normalize input data format.

        Args:
            input_data: A ReMarkupInput, a dictionary, or a list of these

        Returns:
            List of ReMarkupInput objects

        Raises:
            ReMarkupTypeError: When input format is not supported
        """
        items = input_data if isinstance(input_data, list) else [input_data]
        result = []
        for item in items:
            if isinstance(item, ReMarkupInput):
                result.append(item)
            elif isinstance(item, dict):
                try:
                    result.append(ReMarkupInput.from_dict(item))
                except KeyError as e:
                    raise ReMarkupTypeError(
                        f'Input dictionary is missing key {e}'
                    ) from e
            else:
                raise ReMarkupTypeError(f'Unsupported input type: {type(item)}')
        return result

    def process(
        self,
        input_data: Union[ReMarkupInput, dict, List[Union[ReMarkupInput, dict]]],
    ) -> List[ReMarkupOutput]:
        """
        Re-markup a batch of fragment pairs.

        Failed items produce an output whose remarked_html is None, unless
        raise_errors is configured.

        Args:
            input_data: A ReMarkupInput, a dictionary, or a list of these

        Returns:
            List of ReMarkupOutput objects, in input order

        Raises:
            ReMarkupError: When an item fails and raise_errors is True
        """
        inputs = self._normalize_input(input_data)
        logger.info(f'Starting to process {len(inputs)} inputs')

        outputs = []
        for item in inputs:
            try:
                remarked_html = self.re_markup(item.original_html, item.modified_html)
            except Exception as e:
                if self.raise_errors:
                    raise e
                logger.error(
                    f'Re-markup failed (case_id: {item.case_id}): {str(e)}'
                )
                remarked_html = None
            outputs.append(ReMarkupOutput(remarked_html, case_id=item.case_id))

        logger.info(f'Processing completed, output {len(outputs)} results')
        return outputs
