"""Manual trade entry validation."""

from dataclasses import dataclass, replace
from decimal import Decimal

from tradelog.errors import InvalidDateError, InvalidNumberError, TradeValidationError
from tradelog.ingest.normalize import parse_date, parse_number
from tradelog.journal.types import Trade, TradeDirection


@dataclass
class TradeForm:
    """Trade fields as typed by the user."""

    date: str = ""
    asset: str = ""
    direction: TradeDirection = TradeDirection.LONG
    leverage: str = ""
    entry_price: str = ""
    exit_price: str = ""
    size: str = ""
    stop_loss: str = ""
    take_profit: str = ""
    journal: str = ""

    @classmethod
    def from_trade(cls, trade: Trade) -> "TradeForm":
        """Prefill the form for editing an existing trade."""
        return cls(
            date=trade.date.strftime("%Y-%m-%d"),
            asset=trade.asset,
            direction=trade.direction,
            leverage=trade.leverage,
            entry_price=_text(trade.entry_price),
            exit_price=_text(trade.exit_price),
            size=_text(trade.size),
            stop_loss=_text(trade.stop_loss),
            take_profit=_text(trade.take_profit),
            journal=trade.journal,
        )


def validate_form(form: TradeForm, require_exit: bool = False) -> dict[str, str]:
    """
    Validate a trade form.

    Args:
        form: The submitted form
        require_exit: Exit price must be present (saving as closed)

    Returns:
        Mapping of field name to error message, empty when valid
    """
    errors: dict[str, str] = {}

    if not form.asset.strip():
        errors["asset"] = "Asset is required."

    if not form.date.strip():
        errors["date"] = "Date is required."
    else:
        try:
            parse_date(form.date)
        except InvalidDateError as e:
            errors["date"] = str(e)

    if not _is_positive(form.entry_price):
        errors["entry_price"] = "Entry Price must be a positive number."

    if not _is_positive(form.size):
        errors["size"] = "Size must be a positive number."

    exit_value = form.exit_price.strip()
    if require_exit and not exit_value:
        errors["exit_price"] = "Exit Price is required to save as a closed trade."
    elif exit_value and not _is_positive(exit_value):
        errors["exit_price"] = "If provided, Exit Price must be a positive number."

    return errors


def build_trade(form: TradeForm, require_exit: bool = False) -> Trade:
    """
    Turn a valid form into a trade candidate without an id.

    Raises:
        TradeValidationError: If the form does not validate
    """
    errors = validate_form(form, require_exit=require_exit)
    if errors:
        raise TradeValidationError(errors)

    return Trade(
        date=parse_date(form.date),
        asset=form.asset.strip(),
        direction=form.direction,
        entry_price=parse_number(form.entry_price),
        size=parse_number(form.size),
        exit_price=_optional_positive(form.exit_price),
        leverage=form.leverage.strip(),
        stop_loss=_optional_positive(form.stop_loss),
        take_profit=_optional_positive(form.take_profit),
        journal=form.journal,
    )


def apply_edit(existing: Trade, form: TradeForm) -> Trade:
    """
    Apply an edit form to an existing trade, keeping its id and analysis.

    A closed trade must keep an exit price. Adding one to an open trade
    closes it.
    """
    edited = build_trade(form, require_exit=existing.is_closed)
    return replace(edited, id=existing.id, analysis=existing.analysis)


def _is_positive(raw: str) -> bool:
    try:
        return parse_number(raw) > 0
    except InvalidNumberError:
        return False


def _optional_positive(raw: str) -> Decimal | None:
    if not raw or not raw.strip():
        return None
    try:
        value = parse_number(raw)
    except InvalidNumberError:
        return None
    return value if value > 0 else None


def _text(value: Decimal | None) -> str:
    return "" if value is None else str(value)
