"""Export layer — output generation.

Renders templates and writes or copies files under the target directory.
"""

from berlin.export.assets import ExportedFile, copy_static, write_output
from berlin.export.renderer import Renderer

__all__ = ["ExportedFile", "Renderer", "copy_static", "write_output"]
