"""
AWS Resource Inspectors Package.

This package contains service-specific modules for reading live AWS resources
into immutable snapshots. Each module handles one AWS service.
"""

from .base import RESOURCE_KINDS, ResourceInspector

__all__ = [
    "RESOURCE_KINDS",
    "ResourceInspector",
]
