"""
ShareNest: rental listing and booking API.
"""

__version__ = "1.0.0"
