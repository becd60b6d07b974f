"""
Render layers for the ticker.

- RenderLayer: the interface the controller draws through
- ImageRenderLayer: Pillow/numpy implementation producing viewport frames
"""

from ticker.render.base import RenderLayer
from ticker.render.image_layer import ImageRenderLayer

__all__ = [
    'RenderLayer',
    'ImageRenderLayer',
]
