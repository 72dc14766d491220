"""Content Forge: multi-provider content generation service."""

__version__ = "0.1.0"
