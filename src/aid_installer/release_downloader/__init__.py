"""
Release downloader.

This package handles:
1. Downloading release archives over HTTP
2. Extracting archives
3. Verifying the extracted binary
"""

from .extractor import ArchiveExtractor
from .fetcher import ArchiveFetcher
from .validator import BinaryValidator

__all__ = ["ArchiveExtractor", "ArchiveFetcher", "BinaryValidator"]
