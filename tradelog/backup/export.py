"""Tab-separated export for pasting into a spreadsheet."""

from decimal import ROUND_HALF_UP, Decimal

from tradelog.ingest.sheet import split_journal
from tradelog.journal.types import Trade, TradeDirection

EXPORT_HEADERS = [
    "Nº",
    "Fecha",
    "Par",
    "Dirección",
    "Apalancamiento",
    "Entrada",
    "Salida",
    "Stop Loss",
    "Take Profit",
    "Tamaño",
    "Justificación técnica",
    "Notas adicionales",
]


class SheetExporter:
    """Renders trades as TSV with locale-specific number formatting."""

    def __init__(self, decimal_separator: str = ",", thousands_separator: str = ".") -> None:
        self._decimal = decimal_separator
        self._thousands = thousands_separator

    def render(self, trades: list[Trade]) -> str:
        """Header line plus one line per trade."""
        lines = ["\t".join(EXPORT_HEADERS)]
        lines.extend(self._render_row(t) for t in trades)
        return "\n".join(lines)

    def _render_row(self, trade: Trade) -> str:
        justification, notes = split_journal(trade.journal)
        row = [
            str(trade.id if trade.id is not None else ""),
            trade.date.strftime("%d/%m/%Y"),
            trade.asset,
            "compra" if trade.direction is TradeDirection.LONG else "venta",
            trade.leverage or "",
            self.format_number(trade.entry_price),
            self.format_number(trade.exit_price) if trade.exit_price else "",
            self._optional_level(trade.stop_loss),
            self._optional_level(trade.take_profit),
            self.format_number(trade.size, min_fraction=2, max_fraction=8),
            _cell(justification),
            _cell(notes),
        ]
        return "\t".join(row)

    def _optional_level(self, value: Decimal | None) -> str:
        if value is None or value == 0:
            return ""
        return self.format_number(value, min_fraction=2, max_fraction=8)

    def format_number(
        self,
        value: Decimal,
        min_fraction: int = 0,
        max_fraction: int = 3,
    ) -> str:
        """
        Format like the es-ES locale: thousands grouping only kicks in from
        five integer digits (``1234,5`` but ``12.345,5``).
        """
        quantized = Decimal(value).quantize(
            Decimal(1).scaleb(-max_fraction), rounding=ROUND_HALF_UP
        )
        sign = "-" if quantized < 0 else ""
        integer_part, _, fraction = f"{abs(quantized):f}".partition(".")

        fraction = fraction.rstrip("0")
        if len(fraction) < min_fraction:
            fraction = fraction.ljust(min_fraction, "0")

        if len(integer_part) >= 5:
            groups = []
            while integer_part:
                groups.insert(0, integer_part[-3:])
                integer_part = integer_part[:-3]
            integer_part = self._thousands.join(groups)

        if fraction:
            return f"{sign}{integer_part}{self._decimal}{fraction}"
        return f"{sign}{integer_part}"


def _cell(text: str) -> str:
    # Tabs and newlines would break the row layout
    return " ".join(text.split())
