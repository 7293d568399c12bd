"""
OPC UA bridge security components.

This package provides security policy/mode resolution and client
certificate management.
"""

from .certificate_manager import ClientCertificateManager, SecuritySettings

__all__ = [
    'ClientCertificateManager',
    'SecuritySettings',
]
