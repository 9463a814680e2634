class CacheXError(Exception):
    """Base class for all exceptions in page-cachex."""


class CacheConfigError(CacheXError):
    """Exception raised for invalid cache configuration or context."""
