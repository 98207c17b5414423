"""
ReMarkup: strip HTML attributes for editing and restore them afterwards.

    rm = ReMarkup()
    editable = rm.un_markup(original)
    # ... a translator edits `editable` into `translated` ...
    restored = rm.re_markup(original, translated)
"""

from remarkup.api import ReMarkup
from remarkup.base import (IDENTITY_ATTRIBUTES, SEMANTIC_ATTRIBUTES,
                           ElementMatch, ReMarkupInput, ReMarkupOutput)
from remarkup.exceptions import (ReMarkupCancelledError, ReMarkupConfigError,
                                 ReMarkupError, ReMarkupInvariantError,
                                 ReMarkupParseError, ReMarkupTypeError)
from remarkup.process.filters import default_element_filter, strip_spaces
from remarkup.process.metric import DefaultElementMetric

__version__ = '1.0.0'
__all__ = [
    'ReMarkup', 'ReMarkupInput', 'ReMarkupOutput', 'ElementMatch',
    'IDENTITY_ATTRIBUTES', 'SEMANTIC_ATTRIBUTES',
    'DefaultElementMetric', 'default_element_filter', 'strip_spaces',
    'ReMarkupError', 'ReMarkupConfigError', 'ReMarkupTypeError',
    'ReMarkupParseError', 'ReMarkupInvariantError', 'ReMarkupCancelledError',
]
