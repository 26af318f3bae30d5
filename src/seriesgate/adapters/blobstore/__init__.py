"""Blob store adapter for Appwrite-style storage buckets."""

from __future__ import annotations

from .client import HttpBlobStore

__all__ = ["HttpBlobStore"]
