"""
Shared helpers for wilderness generation.
"""
