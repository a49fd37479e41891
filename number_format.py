"""
Formato numérico adaptativo para la pantalla de la calculadora.

Este módulo provee AdaptiveNumberFormatter, que representa un número
decimal dentro de un presupuesto máximo de caracteres eligiendo entre
notación decimal simple y notación exponencial según cuál de las dos
pierde menos precisión.

Contrato de interfaz:
    - format(value, max_length=None) -> str
    - parse(text: str) -> Decimal
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation, localcontext


NEGATE = "˗"
MIN_MAX_LENGTH = 6


class FormatError(ValueError):
    """El texto no es un literal válido para los símbolos configurados."""


@dataclass(frozen=True)
class DecimalFormatConfig:
    """Símbolos y límites del formato decimal de la calculadora."""

    decimal_separator: str = "."
    grouping_separator: str = ","
    grouping_used: bool = False
    max_integer_digits: int | None = None
    max_fraction_digits: int = 10
    max_length: int | None = None

    def __post_init__(self):
        for symbol in (self.decimal_separator, self.grouping_separator):
            if len(symbol) != 1 or symbol.isdigit() or symbol in "+-E" + NEGATE:
                raise ValueError(f"Separador no válido: {symbol!r}")
        if self.decimal_separator == self.grouping_separator:
            raise ValueError("Los separadores decimal y de miles deben ser distintos")
        if self.max_fraction_digits < 0:
            raise ValueError("max_fraction_digits no puede ser negativo")
        if self.max_integer_digits is not None and self.max_integer_digits < 1:
            raise ValueError("max_integer_digits debe ser al menos 1")
        if self.max_length is not None and self.max_length < MIN_MAX_LENGTH:
            raise ValueError(
                f"La longitud máxima debe ser al menos {MIN_MAX_LENGTH}"
            )


def as_decimal(value) -> Decimal:
    """Convierte int, float, str o Decimal a Decimal sin ruido binario."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


class AdaptiveNumberFormatter:
    """Formatea y analiza decimales respetando una longitud máxima."""

    def __init__(self, config: DecimalFormatConfig | None = None):
        self.config = config if config is not None else DecimalFormatConfig()
        decimal = re.escape(self.config.decimal_separator)
        grouping = re.escape(self.config.grouping_separator)
        self._literal_re = re.compile(
            rf"^(?P<sign>[-{NEGATE}]?)"
            rf"(?P<int>\d[\d{grouping}]*)?"
            rf"(?:{decimal}(?P<frac>\d*))?"
            r"(?:E(?P<exp>[+-]?\d+))?$"
        )

    # ── Formato ──────────────────────────────────────────────────

    def format(self, value, max_length: int | None = None) -> str:
        """Devuelve la representación más precisa que cabe en max_length.

        Sin presupuesto de longitud (ni en el argumento ni en la
        configuración) se usa la notación simple con el máximo de
        decimales configurado. Si ni siquiera la forma exponencial
        mínima (dEn) cabe, se devuelve esa forma.
        """
        number = as_decimal(value)
        if max_length is None:
            max_length = self.config.max_length
        if max_length is None:
            return self._format_plain(number, self.config.max_fraction_digits)

        plain = self._format_simple(number, max_length)
        scientific = self._format_with_exponent(number, max_length)

        if plain is None:
            return scientific

        if self._difference(number, plain) <= self._difference(number, scientific):
            return plain
        return scientific

    def _format_simple(self, number: Decimal, max_length: int) -> str | None:
        for digits in range(self.config.max_fraction_digits, -1, -1):
            text = self._format_plain(number, digits)
            if len(text) <= max_length:
                return text
        return None

    def _format_with_exponent(self, number: Decimal, max_length: int) -> str:
        digits = max(0, max_length - 3)
        while True:
            text = self._format_scientific(number, digits)
            if len(text) <= max_length or digits == 0:
                return text
            digits -= 1

    def _format_plain(self, number: Decimal, fraction_digits: int) -> str:
        rounded = self._quantize(number, fraction_digits)
        if rounded.is_zero():
            return "0"

        text = f"{abs(rounded):f}"
        integer, _, fraction = text.partition(".")
        fraction = fraction.rstrip("0")

        if self.config.grouping_used:
            integer = f"{int(integer):,}".replace(",", self.config.grouping_separator)

        if fraction:
            text = f"{integer}{self.config.decimal_separator}{fraction}"
        else:
            text = integer
        return "-" + text if rounded < 0 else text

    def _format_scientific(self, number: Decimal, fraction_digits: int) -> str:
        if number.is_zero():
            return "0"

        exponent = number.adjusted()
        mantissa = self._quantize(number.scaleb(-exponent), fraction_digits)
        if abs(mantissa) >= 10:
            # El redondeo llevó la mantisa a 10.xx
            exponent += 1
            mantissa = self._quantize(number.scaleb(-exponent), fraction_digits)

        integer, _, fraction = f"{abs(mantissa):f}".partition(".")
        fraction = fraction.rstrip("0")
        text = integer
        if fraction:
            text += self.config.decimal_separator + fraction
        text += f"E{exponent}"
        return "-" + text if mantissa < 0 else text

    @staticmethod
    def _quantize(number: Decimal, fraction_digits: int) -> Decimal:
        with localcontext() as ctx:
            ctx.prec = max(28, number.adjusted() + fraction_digits + 2)
            return number.quantize(Decimal(1).scaleb(-fraction_digits), ROUND_HALF_EVEN)

    def _difference(self, number: Decimal, text: str) -> Decimal:
        return abs(number - self.parse(text))

    # ── Análisis ─────────────────────────────────────────────────

    def parse(self, text: str) -> Decimal:
        """Convierte un literal simple o exponencial en Decimal.

        Raises:
            FormatError: el texto no es un literal válido.
        """
        match = self._literal_re.fullmatch(text.strip()) if text else None
        if match is None or not (match["int"] or match["frac"]):
            raise FormatError(f"Número no válido: {text!r}")

        integer = (match["int"] or "0").replace(self.config.grouping_separator, "")
        literal = f"{integer}.{match['frac'] or '0'}"
        if match["exp"]:
            literal += f"E{match['exp']}"

        try:
            value = Decimal(literal)
        except InvalidOperation as exc:
            raise FormatError(f"Número no válido: {text!r}") from exc

        return -value if match["sign"] else value

    def to_plain(self, text: str) -> str:
        """Reescribe un literal de la calculadora como literal de Python."""
        return f"{self.parse(text):f}"
