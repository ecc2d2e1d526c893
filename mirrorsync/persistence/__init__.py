"""
Persistence — Batch report files.
"""
