"""
encache — function-result cache with pluggable backends.
"""

__version__ = "0.1.0"
