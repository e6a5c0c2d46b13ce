"""
Storage module for the Keyword Cluster Processor.
Handles Supabase project persistence.
"""
from storage.supabase_client import ProjectStore, get_project_store

__all__ = ["ProjectStore", "get_project_store"]
