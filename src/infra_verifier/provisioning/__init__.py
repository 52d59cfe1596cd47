"""
Provisioning Driver Package.

This package wraps the external infrastructure-as-code tool used to create
and destroy the environments under test.
"""

from .terraform import TerraformDriver

__all__ = [
    "TerraformDriver",
]
