"""Error taxonomy for metadata resolution."""

from __future__ import annotations


class ProvmetaError(RuntimeError):
    def __init__(self, message: str, *, code: str = "ERROR", hint: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.hint = hint or ""


class ConfigurationError(ProvmetaError):
    """Fatal: the metadata sources describe something that cannot be resolved."""

    def __init__(self, message: str, *, code: str = "CONFIG_ERROR", hint: str | None = None) -> None:
        super().__init__(message, code=code, hint=hint)


class RecoverableInputError(ProvmetaError):
    """Recorded on the document as a warning; resolution continues without the value."""

    def __init__(self, message: str, *, code: str = "INPUT_ERROR", hint: str | None = None, key: str | None = None) -> None:
        super().__init__(message, code=code, hint=hint)
        self.key = key

    def as_warning(self) -> dict[str, str | None]:
        return {
            "type": self.__class__.__name__,
            "code": self.code,
            "message": str(self),
            "key": self.key,
        }
