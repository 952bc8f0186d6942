"""
AI Tool Navigator: catalog query service.
"""

__version__ = "0.1.0"
