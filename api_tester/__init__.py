"""
API Tester - Configuration-driven API health checks.
"""

__version__ = "1.0.0"
