"""
Utility modules for the VLM product tagger
"""

from .config import ConfigManager, VisionModelSettings, setup_logging

__all__ = ["ConfigManager", "VisionModelSettings", "setup_logging"]
