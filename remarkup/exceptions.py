"""
Custom exception classes for the ReMarkup attribute restoration system.

This module defines a hierarchy of exceptions used throughout the ReMarkup
system to provide more specific error handling and debugging information.
"""


class ReMarkupError(Exception):
    """
    Base exception class for all ReMarkup-related errors.

    All custom exceptions in the ReMarkup system inherit from this class,
    allowing for generic exception handling when needed.
    """
    pass


class ReMarkupConfigError(ReMarkupError):
    """
    Exception raised for configuration-related errors.

    This exception is raised when there are issues with the reconciler
    configuration, such as invalid filter or rule objects, a negative
    child distance or an unknown configuration key.
    """
    pass


class ReMarkupTypeError(ReMarkupError):
    """
    Exception raised for type-related errors.

    This exception is raised when an input of an unsupported type is passed
    to the public API, such as a non-string HTML fragment.
    """
    pass


class ReMarkupParseError(ReMarkupError):
    """
    Exception raised when an HTML fragment cannot be parsed.

    The underlying parser error is chained as the cause.
    """
    pass


class ReMarkupInvariantError(ReMarkupError):
    """
    Exception raised when an internal invariant is violated.

    This is raised, for example, when an element is looked up in a flattened
    tree it does not belong to, which means nodes from mismatched trees were
    compared.
    """
    pass


class ReMarkupCancelledError(ReMarkupError):
    """
    Exception raised when a reconciliation is cancelled or times out.

    Cancellation is checked between the cells of the top-level distance
    matrix.
    """
    pass
