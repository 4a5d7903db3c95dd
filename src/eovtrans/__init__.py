"""
eovtrans - geodetic transformations for Hungarian survey work.

This package converts coordinates between the Hungarian national projection
(EOV), the European terrestrial reference frames (ETRF2000/ETRS89) and the
global ITRF realizations, and provides the planar measurement helpers used on
top of those transformations.
"""

__version__ = "0.1.0"
