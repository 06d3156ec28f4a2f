"""
depinject command line.

Usage:
    depinject check myapp.services:REGISTRY
    depinject tree myapp.services:REGISTRY --root api
    depinject graph myapp.services:REGISTRY --out services.dot
    depinject resolve myapp.services:REGISTRY clock
"""

__cli_name__ = "depinject"
