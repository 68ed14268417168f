"""
Error taxonomy for the provenance analysis service.

Only failures that abort an analysis are exceptions. Expected upstream
variability (missing files, rate limits, outages) travels as FetchOutcome
values instead, see provenance/retry.py.
"""


class AnalysisError(Exception):
    """Base class for errors that abort an analysis run."""

    code = "analysis_error"
    status_code = 500

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class InvalidLocatorError(AnalysisError):
    """The submitted repository URL is not a valid GitHub repository URL."""

    code = "invalid_locator"
    status_code = 400


class ConfigurationError(AnalysisError):
    """A required credential or setting is missing or malformed."""

    code = "configuration_error"
    status_code = 500


class InferenceError(AnalysisError):
    """The inference endpoint did not produce a usable completion."""

    code = "inference_failed"
    status_code = 500

    def __init__(self, message: str, code: str | None = None, status: int | None = None):
        super().__init__(message, code)
        self.status = status
