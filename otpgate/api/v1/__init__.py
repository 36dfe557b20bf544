"""
API v1 package.

Contains versioned API routes for registration, verification and login.
"""

from otpgate.api.v1.routes import router

__all__ = ["router"]
