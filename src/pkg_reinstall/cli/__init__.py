"""Command line tools for pkg-reinstall."""
