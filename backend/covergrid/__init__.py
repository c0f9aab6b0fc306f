"""
CoverGrid

Album-cover grid preview and canvas export, with tiles ordered by the
brightness of each cover's dominant color.
"""

__version__ = "1.0.0"
