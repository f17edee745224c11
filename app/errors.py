# app/errors.py


class TypemasterError(Exception):
    """Base class for application errors."""


class ConfigError(TypemasterError, ValueError):
    pass


class TextGenerationError(TypemasterError):
    """Raised by a text backend when it cannot produce practice text."""


class BackendResponseError(TextGenerationError):
    pass
