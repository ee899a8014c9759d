"""
csvsql - in-memory CSV tables with a small SQL subset.
"""

__version__ = "0.1.0"
