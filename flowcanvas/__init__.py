"""flowcanvas: workflow canvas core.

Versioned node catalog, editor <-> canonical graph conversion and
n8n-style automatic layout.
"""

__version__ = "0.1.0"
