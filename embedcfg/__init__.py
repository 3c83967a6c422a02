"""
Embedded Python configuration compiler and build-script dialect.
"""

__version__ = "0.1.0"
