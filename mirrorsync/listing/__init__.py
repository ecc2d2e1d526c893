"""
Listing — Remote repository discovery.
"""

from .gitlab import GitLabLister

__all__ = ["GitLabLister"]
