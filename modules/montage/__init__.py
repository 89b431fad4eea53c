"""
Montage module.

Turns an ordered list of photos/videos and one recorded audio clip into a
single MP4: per-item normalization, concatenation, audio mux.
"""

from modules.montage.process import compose_montage
from modules.montage.workspace import RequestWorkspace, create_workspace, cleanup_workspace, discard_workspace

__all__ = ["compose_montage", "RequestWorkspace", "create_workspace", "cleanup_workspace", "discard_workspace"]
