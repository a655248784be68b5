"""Frame building and terminal painting for the split diff view."""

from .frame import Frame, build_frame
from .screen import PaneLayout, compute_layout, render_frame, render_frame_lines

__all__ = [
    "Frame",
    "PaneLayout",
    "build_frame",
    "compute_layout",
    "render_frame",
    "render_frame_lines",
]
