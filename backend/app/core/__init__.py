"""
Core application modules.
Contains configuration, logging, metrics, tracing and the Supabase client.
"""
from .config import Settings, get_settings
from .database import get_supabase_client

__all__ = ["Settings", "get_settings", "get_supabase_client"]
