# ==============================================
# Errors
# ==============================================
#
# Every failure the CLI knows how to report derives from GBTSError.
# The `code` attribute lets callers tell budget and missing-key
# conditions apart from ordinary step failures.
#
# ==============================================

from typing import Optional


class GBTSError(Exception):
    """Base error for all GBTS failures."""

    code = "GBTS_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class TranspilationError(GBTSError):
    code = "TRANSPILATION_ERROR"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause)


class CompilationError(GBTSError):
    code = "COMPILATION_ERROR"

    def __init__(self, message: str, cause: Optional[BaseException] = None, stderr: str = ""):
        super().__init__(message, cause=cause)
        self.stderr = stderr


class SourceNotFoundError(GBTSError):
    code = "FILE_NOT_FOUND"

    def __init__(self, file_path: str):
        super().__init__(f"File {file_path} does not exist")
        self.file_path = file_path


class ConfigError(GBTSError):
    code = "CONFIG_ERROR"

    def __init__(self, errors):
        super().__init__("Invalid configuration: " + "; ".join(errors))
        self.errors = list(errors)


class MissingAPIKeyError(GBTSError):
    code = "MISSING_API_KEY"


class BudgetExceededError(GBTSError):
    code = "BUDGET_EXCEEDED"


class ProviderError(GBTSError):
    """A provider call failed (HTTP error, connection error, empty content)."""

    code = "PROVIDER_ERROR"

    def __init__(self, message: str, status: Optional[int] = None, cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause)
        self.status = status


class ProviderAuthError(ProviderError):
    code = "PROVIDER_AUTH_ERROR"


class ProviderRateLimitError(ProviderError):
    code = "PROVIDER_RATE_LIMIT"
