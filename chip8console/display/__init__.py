"""Display presentation for the console."""

from .framebuffer import FramebufferView, PresentationTarget, ascii_frame
from .surface import ImageSurface

__all__ = ["FramebufferView", "ImageSurface", "PresentationTarget", "ascii_frame"]
