"""
Exporters Module

Contains exporters for converting built world facts registries to other formats.
"""

from . import xlsx_exporter

__all__ = ['xlsx_exporter']
