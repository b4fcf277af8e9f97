"""
Adapters package for the Gate Service.

Contains the HTTP client for the downstream generation provider. Adapters
map provider failures to shared errors and perform no I/O outside explicit
calls.
"""

from .generation_client import GenerationClient

__all__ = ["GenerationClient"]
