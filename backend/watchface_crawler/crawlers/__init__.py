"""Browser rendering and page fetching."""

from .renderer import Renderer
from .fetcher import PageFetcher

__all__ = ['Renderer', 'PageFetcher']
