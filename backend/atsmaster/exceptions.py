class AnalysisError(RuntimeError):
    """Raised when a résumé/job-description analysis cannot produce a result"""


class ConfigurationError(AnalysisError):
    """Raised when the model provider credential is missing.

    The message is meant for the operator and names the setting to provide.
    """


class EmptyResponseError(AnalysisError):
    """Raised when the provider answers without any text payload"""


class FormatError(AnalysisError):
    """Raised when the provider text does not match the declared output schema"""


class TransportError(AnalysisError):
    """Raised on network failures, provider API errors and timeouts"""


class ExtractionError(ValueError):
    """Raised when an uploaded document cannot be turned into plain text"""


class InvalidTransitionError(RuntimeError):
    """Raised when an operation is not allowed from the current analysis state"""
