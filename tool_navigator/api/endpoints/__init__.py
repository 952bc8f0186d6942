"""
API endpoint routers.
"""
