"""
Furioza Forum Core

Authorization, moderation and accountability core of the FURIOZA team forum.
"""

__version__ = "1.0.0"
