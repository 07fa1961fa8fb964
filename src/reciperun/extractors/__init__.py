"""Extraction strategies for recipe pages."""

from .browser import BrowserSource
from .instagram import InstagramCaptionSource
from .structured import JsonLdSource

__all__ = [
    "BrowserSource",
    "InstagramCaptionSource",
    "JsonLdSource",
]
