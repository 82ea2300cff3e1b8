"""Normalized error types."""


class TradelogError(Exception):
    """Base class for all tradelog errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class ParseError(TradelogError):
    """A single value or record could not be parsed.

    Row-scoped: importers catch these and skip the offending row.
    """

    pass


class InvalidNumberError(ParseError):
    """Value is not a number in any supported locale format."""

    def __init__(self, raw: str) -> None:
        super().__init__(f"'{raw}' is not a valid number", code="invalid_number")
        self.raw = raw


class InvalidDateError(ParseError):
    """Value is not a valid DD/MM/YYYY or YYYY-MM-DD date."""

    def __init__(self, raw: str, reason: str = "") -> None:
        message = f"Could not parse date: '{raw}'"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, code="invalid_date")
        self.raw = raw


class InvalidDirectionError(ParseError):
    """Direction token is neither long/compra nor short/venta."""

    def __init__(self, raw: str) -> None:
        super().__init__(
            f"Invalid direction: '{raw}'. Must contain 'compra' or 'venta'",
            code="invalid_direction",
        )
        self.raw = raw


class MissingRequiredFieldError(ParseError):
    """A required field is absent or blank."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Field '{field}' is empty", code="missing_field")
        self.field = field


class NonPositiveValueError(ParseError):
    """A price or size that must be positive is zero or negative."""

    def __init__(self, field: str, raw: str) -> None:
        super().__init__(
            f"Field '{field}' must be positive, got '{raw}'",
            code="non_positive",
        )
        self.field = field
        self.raw = raw


class SheetFormatError(TradelogError):
    """Tabular input is unusable as a whole (empty, header only)."""

    pass


class InvalidSnapshotError(TradelogError):
    """Backup snapshot failed shape validation. Nothing was restored."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message, code="invalid_snapshot")
        self.errors = errors or []


class ExternalServiceError(TradelogError):
    """The AI collaborator failed or returned an unusable response.

    Retryable by re-invoking the originating request.
    """

    pass


class TradeValidationError(TradelogError):
    """Form-level validation failure. Blocks submission."""

    def __init__(self, errors: dict[str, str]) -> None:
        summary = "; ".join(f"{k}: {v}" for k, v in errors.items())
        super().__init__(f"Invalid trade: {summary}", code="validation")
        self.errors = errors


class AuditSelectionError(TradelogError):
    """Audit trade selection is empty, too large or malformed."""

    pass
