"""
Cross-document entity resolution for the world facts harvester.
"""

from .identifier import Identifier, canonicalize
from .resolver import NotFound, InvalidArguments, resolve

__all__ = [
    'Identifier',
    'canonicalize',
    'NotFound',
    'InvalidArguments',
    'resolve'
]
