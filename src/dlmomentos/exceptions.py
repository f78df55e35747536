"""
Custom exception classes with error codes
"""


class DlmomentosError(Exception):
    """Base exception for dlmomentos errors"""

    def __init__(self, message: str, code: str, details: str = ""):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON output"""
        return {"code": self.code, "message": self.message, "details": self.details}


class AuthenticationError(DlmomentosError):
    """Missing or rejected credential"""

    def __init__(self, message: str, details: str = ""):
        super().__init__(message, "AUTH_FAILED", details)


class NetworkError(DlmomentosError):
    """Network connection issue or unexpected HTTP status"""

    def __init__(self, message: str, details: str = ""):
        super().__init__(message, "NETWORK_ERROR", details)


class DecodeError(DlmomentosError):
    """Response body does not match the expected shape"""

    def __init__(self, message: str, details: str = ""):
        super().__init__(message, "DECODE_ERROR", details)


class FileWriteError(DlmomentosError):
    """Cannot write to output directory (permission or I/O error)"""

    def __init__(self, message: str, details: str = ""):
        super().__init__(message, "FILE_WRITE_ERROR", details)


class ConfigError(DlmomentosError):
    """Missing or invalid configuration"""

    def __init__(self, message: str, details: str = ""):
        super().__init__(message, "INVALID_CONFIG", details)


class DownloadFailedError(DlmomentosError):
    """Download did not complete"""

    def __init__(self, message: str, details: str = ""):
        super().__init__(message, "DOWNLOAD_FAILED", details)
