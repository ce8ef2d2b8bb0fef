"""Utility modules for fluent_http."""

from .sanitizer import (
    mask_sensitive_data,
    mask_url,
    mask_headers,
    add_sensitive_keys,
    is_sensitive_key,
)

__all__ = [
    'mask_sensitive_data',
    'mask_url',
    'mask_headers',
    'add_sensitive_keys',
    'is_sensitive_key',
]
