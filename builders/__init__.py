"""
Builders Module

One builder per fact. Each turns a parsed document, plus the registries
built before it, into a registry of its own.
"""

from . import (
    un_members,
    sovereign_states,
    regions,
    flags,
    currencies,
    calling_codes,
    languages,
    capitals
)

__all__ = [
    'un_members',
    'sovereign_states',
    'regions',
    'flags',
    'currencies',
    'calling_codes',
    'languages',
    'capitals'
]
