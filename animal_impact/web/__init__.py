"""
Web layer: Flask REST API and static single-page client.
"""

from animal_impact.web.server import create_app, main

__all__ = ['create_app', 'main']
