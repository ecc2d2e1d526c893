"""
mirrorsync — Mirror every repository of a set of hosting accounts locally.
"""

__version__ = "0.1.0"
