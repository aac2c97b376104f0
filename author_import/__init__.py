"""
Streaming bulk import of Open Library author dumps.
"""

__version__ = "0.1.0"
