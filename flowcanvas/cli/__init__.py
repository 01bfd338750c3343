"""Command line interface for flowcanvas."""
