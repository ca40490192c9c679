"""
Images handler package.
"""
from handlers.images.handler import ImagesHandler

__all__ = ["ImagesHandler"]
