"""
Core models, configuration and normalization for the author importer.
"""
