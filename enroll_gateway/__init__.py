"""
Self-service device enrollment and ad-hoc build gateway.
"""

__version__ = "1.0.0"
