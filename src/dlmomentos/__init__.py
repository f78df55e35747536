"""
dlmomentos - Download Momentos event recordings and transcripts
"""

try:
    from importlib.metadata import version

    __version__ = version("dlmomentos")
except Exception:
    # Fallback for editable/uninstalled checkouts
    __version__ = "0.dev0"
__author__ = "dlmomentos"
__description__ = "CLI tool to download Momentos event recordings and WebVTT transcripts"

from .config import Config
from .exceptions import (
    AuthenticationError,
    ConfigError,
    DecodeError,
    DlmomentosError,
    DownloadFailedError,
    FileWriteError,
    NetworkError,
)
from .logger import setup_logging
from .momentos_client import MomentosClient
from .orchestrator import DownloadReport, GroupDownloader
from .vtt import encode_vtt, format_timestamp
from .writer import OutputWriter

__all__ = [
    "MomentosClient",
    "Config",
    "ConfigError",
    "DlmomentosError",
    "AuthenticationError",
    "NetworkError",
    "DecodeError",
    "FileWriteError",
    "DownloadFailedError",
    "GroupDownloader",
    "DownloadReport",
    "OutputWriter",
    "encode_vtt",
    "format_timestamp",
    "setup_logging",
    "__version__",
]
