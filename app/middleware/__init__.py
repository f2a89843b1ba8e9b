"""
Middleware components for request processing.
"""

from app.middleware.cors import CORSMiddleware

__all__ = ["CORSMiddleware"]
