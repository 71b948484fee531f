"""Shared utilities for extraction."""

from .normalizers import (
    clean_text,
    truncate,
    normalize_author,
    absolutize_url,
    strip_fragment,
)

__all__ = [
    'clean_text',
    'truncate',
    'normalize_author',
    'absolutize_url',
    'strip_fragment',
]
