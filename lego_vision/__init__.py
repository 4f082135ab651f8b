"""
LEGO Board Vision
=================

Locates a LEGO baseplate in a camera frame and turns it into labelled
colour regions.

Architecture:
    1. Board Segmentation – remote polygon service (or a static polygon)
    2. Board Location     – polygon mask → largest contour → 4-corner quad
    3. Perspective Norm.  – warp to a 640×320 top-down raster
    4. Grid Sampling      – 16×32 cells, mean Lab, CIEDE2000 palette match
    5. Region Grouping    – 4-connected same-colour regions + convex hulls
"""

__version__ = "1.0.0"
