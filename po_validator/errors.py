"""Exceptions raised by the validator and helpers to classify provider failures."""


class ConfigurationError(ValueError):
    """Raised when the validator is configured with an unknown provider or lacks a credential."""


class ResponseFormatError(ValueError):
    """Raised when a model response does not follow the expected JSON contract."""


def is_model_not_found_error(error: BaseException) -> bool:
    """
    Checks whether a provider error means the configured model does not exist.

    These errors are fatal for the remaining batches: retrying with the same
    model name cannot succeed. Provider error codes such as
    ``model_not_found`` are matched as well.
    """
    message = str(error).lower().replace('_', ' ')
    return 'model' in message and 'not found' in message
