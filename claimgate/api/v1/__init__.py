"""
API v1 package.

Contains versioned API routes for the claim workflow.
"""

from claimgate.api.v1.routes import router

__all__ = ["router"]
