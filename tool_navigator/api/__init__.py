"""
HTTP API for the Tool Navigator service.
"""
