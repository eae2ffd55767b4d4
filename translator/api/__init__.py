"""
HTTP API for the translator service.
"""
