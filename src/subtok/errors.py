"""Custom exception hierarchy for subtok errors."""


class SubTokError(Exception):
    """Base exception for all subtok errors."""


class ConfigError(SubTokError):
    """Raised when a training configuration cannot be satisfied."""

    def __init__(
        self,
        message: str,
        *,
        vocab_size: int | None = None,
        min_size: int | None = None,
    ) -> None:
        """Initialize with optional sizes that get appended to the message."""
        extra = " "
        if vocab_size is not None:
            extra += f"(vocab size: {vocab_size}) "
        if min_size is not None:
            extra += f"(required at least: {min_size}) "
        super().__init__(message + extra)
        self.vocab_size = vocab_size
        self.min_size = min_size


class VocabularyError(SubTokError):
    """Raised when vocabulary operations fail."""

    def __init__(
        self,
        message: str,
        *,
        symbol: str | None = None,
        token_id: int | None = None,
    ) -> None:
        extra = " "
        if symbol is not None:
            extra += f"(symbol: {symbol!r}) "
        if token_id is not None:
            extra += f"(token id: {token_id}) "
        super().__init__(message + extra)
        self.symbol = symbol
        self.token_id = token_id


class EncodeError(SubTokError):
    """Raised when text cannot be encoded."""


class UnknownSymbolError(EncodeError):
    """Raised when a character has no vocabulary entry and no unknown token is reserved."""

    def __init__(
        self,
        message: str,
        *,
        symbol: str,
        position: int | None = None,
    ) -> None:
        extra = f" (symbol: {symbol!r}) "
        if position is not None:
            extra += f"(position: {position}) "
        super().__init__(message + extra)
        self.symbol = symbol
        self.position = position


class DecodeError(SubTokError):
    """Raised when token ids cannot be decoded."""


class UnknownIdError(DecodeError):
    """Raised when a token id is not in the vocabulary."""

    def __init__(self, message: str, *, token_id: int) -> None:
        super().__init__(f"{message} (invalid token: {token_id}) ")
        self.token_id = token_id


class ModelLoadError(SubTokError):
    """Raised when loading a tokenizer model fails."""

    def __init__(
        self,
        message: str,
        *,
        model_path: str | None = None,
    ) -> None:
        extra = " "
        if model_path:
            extra += f"(path: {model_path}) "
        super().__init__(message + extra)
        self.model_path = model_path


class MalformedModelError(ModelLoadError):
    """Raised when a persisted record is corrupted or internally inconsistent."""

    def __init__(
        self,
        message: str,
        *,
        model_path: str | None = None,
        line_no: int | None = None,
    ) -> None:
        """
        Initialize MalformedModelError with location details.

        :param message: Error message.
        :param model_path: Record the error was found in, when known.
        :param line_no: 1-based line of the offending entry, when known.
        """
        if line_no is not None:
            message = f"{message} (line: {line_no})"
        super().__init__(message, model_path=model_path)
        self.line_no = line_no
