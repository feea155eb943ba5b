"""
Book catalog core.

This package contains:
- Book models and field validation
- Asset store for uploaded cover images
- MongoDB document store
- Book record manager keeping records and images consistent
"""

__version__ = "1.0.0"
