"""
Base data structures and constants for ReMarkup attribute restoration.

This module defines the default attribute sets and the data classes used
throughout the ReMarkup system for passing fragments in and out of the
batch API.
"""

import re
from dataclasses import dataclass

# Attributes that lead to a definite matching of two elements
IDENTITY_ATTRIBUTES = ('id', 'translate-id', 'remarkup-id')

# Attribute families reserved for translation and remarkup tooling
RESERVED_ATTRIBUTE_PATTERN = re.compile(r'^(remarkup|translate)-.+$')

# Button-like input types whose `value` is visible text
BUTTON_INPUT_TYPES = ('button', 'submit')

# Default penalty for a child element present in only one of two trees
NONEXISTENT_CHILD_DISTANCE = 10


def is_button_value(name: str, element) -> bool:
    """Match the `value` attribute of button-like inputs, which is visible text."""
    return name == 'value' and element.get('type') in BUTTON_INPUT_TYPES


def is_button_type(name: str, element) -> bool:
    """
    Match the `type` attribute of button-like inputs.

    Unmarked fragments keep it, so `is_button_value` still recognizes the
    visible `value` on the edited element.
    """
    return name == 'type' and element.get('type') in BUTTON_INPUT_TYPES


# Human-visible attributes whose values are expected to be edited
SEMANTIC_ATTRIBUTES = (
    'alt',
    'label',
    'placeholder',
    'title',
    'tooltip',
    'data-info',
    'popover',
    is_button_value,
)


@dataclass(frozen=True)
class ElementMatch:
    """
    One pair of the global assignment between two flattened trees.

    Attributes:
        original_index: Index of the element in the original tree
        modified_index: Index of the element in the modified tree
        cost: Subtree dissimilarity of the pair
    """

    original_index: int
    modified_index: int
    cost: float


class ReMarkupInput:
    """
    Input data structure for the ReMarkup batch API.

    Contains the original fully attributed fragment, the edited fragment
    and an optional case identifier.
    """

    def __init__(
        self, original_html: str, modified_html: str, case_id: str = None
    ):
        """
        Initialize ReMarkupInput.

        Args:
            original_html: Original HTML fragment, including all attributes
            modified_html: Edited HTML fragment to restore attributes onto
            case_id: Optional identifier for the case being processed
        """
        self.original_html = original_html
        self.modified_html = modified_html
        self.case_id = case_id

    @classmethod
    def from_dict(cls, data: dict) -> 'ReMarkupInput':
        """
        Create ReMarkupInput from a dictionary.

        Args:
            data: Dictionary containing 'original_html', 'modified_html'
                  and optionally 'case_id'

        Returns:
            ReMarkupInput instance
        """
        return cls(
            original_html=data['original_html'],
            modified_html=data['modified_html'],
            case_id=data.get('case_id', None),
        )

    def to_dict(self) -> dict:
        """
        Convert ReMarkupInput to a dictionary.

        Returns:
            Dictionary representation of the input data
        """
        output_dict = {}
        if self.case_id is not None:
            output_dict['case_id'] = self.case_id
        output_dict['original_html'] = self.original_html
        output_dict['modified_html'] = self.modified_html
        return output_dict


class ReMarkupOutput:
    """
    Output data structure for the ReMarkup batch API.

    Contains the remarked HTML fragment (None when processing failed) and
    optional case ID.
    """

    def __init__(self, remarked_html: str, case_id: str = None):
        self.remarked_html = remarked_html
        self.case_id = case_id

    @classmethod
    def from_dict(cls, data: dict) -> 'ReMarkupOutput':
        return cls(
            remarked_html=data['remarked_html'],
            case_id=data.get('case_id', None),
        )

    def to_dict(self) -> dict:
        output_dict = {}
        if self.case_id is not None:
            output_dict['case_id'] = self.case_id
        output_dict['remarked_html'] = self.remarked_html
        return output_dict
