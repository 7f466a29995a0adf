"""
textstore: a key-value text store served over HTTP.
"""

__version__ = "1.0.0"
