"""
AnimeStream
Resolves watchanimeworld episode ids into playable media URLs.
"""

__version__ = "1.0.0"
