"""
API route modules.

Import all route modules here for easy access.
"""

from clipsync.api.routes import clips, salesforce, webhook

__all__ = ["clips", "salesforce", "webhook"]
