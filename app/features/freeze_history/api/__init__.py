"""
HTTP routes for the freeze history feature.
"""

from .router import FreezeDataCache, get_data_cache, get_sheets_client, router

__all__ = ["FreezeDataCache", "get_data_cache", "get_sheets_client", "router"]
