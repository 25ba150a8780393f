"""
Pipeline components for pair communications.

Pure transformations of fetched rows into analytics payloads.
"""

__all__ = ["aggregation"]
