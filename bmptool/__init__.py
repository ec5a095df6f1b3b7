"""
Command-line toolkit for filtering and separating 24-bit bitmap images.
"""

__version__ = "0.1.0"
