"""
Mirror — Keep local bare mirrors in sync with their remotes.

This package holds the per-repository decision engine, the git
maintenance steps it drives, and the batch manager that feeds it.
"""
