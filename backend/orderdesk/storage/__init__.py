"""Blob storage for uploaded order files."""

from .local_storage import LocalStorage, get_storage

__all__ = ["LocalStorage", "get_storage"]
