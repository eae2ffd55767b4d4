"""
Data product translator.
Fetches data from heterogeneous backends by connection template and
normalizes it into canonical measurement items for the broker API.
"""

__version__ = "1.0.0"
