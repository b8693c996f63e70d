"""
Error taxonomy for the generation pipeline.
Every error carries the HTTP status the web API answers with.
"""


class PrismError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(PrismError):
    """Required setting missing (e.g. GOOGLE_AI_API_KEY)."""
    status_code = 500


class AuthenticationError(PrismError):
    status_code = 401


class ValidationError(PrismError):
    status_code = 400


class ProviderError(PrismError):
    """Upstream model failure or malformed/missing image payload."""
    status_code = 500


class StorageError(PrismError):
    status_code = 500


class PersistenceError(PrismError):
    status_code = 500
