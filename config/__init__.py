"""
Configuration module for the Keyword Cluster Processor.
"""
from config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
