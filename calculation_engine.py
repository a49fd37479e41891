"""
Motor de cálculo de la calculadora.

Este módulo provee CalculationEngine, una máquina de estados que
consume comandos discretos (dígitos, operadores, paréntesis, memoria,
funciones) y construye a la vez la fórmula visible y el valor de la
pantalla. La evaluación numérica se delega en un evaluador inyectado
(por defecto FormulaEvaluator con aritmética de coma flotante).

Contrato de interfaz:
    - process(*commands)
    - get_result() -> CalculationResult
    - reset_to(value)
    - is_legal_command(character: str) -> bool
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import structlog

from commands import (
    Command,
    Constant,
    Digit,
    Function,
    Key,
    Memory,
    Operator,
    decode_command,
    decode_keys,
)
from formula_evaluator import FormulaEvaluator, PythonMathProvider
from number_format import (
    NEGATE,
    AdaptiveNumberFormatter,
    DecimalFormatConfig,
    FormatError,
    as_decimal,
)


logger = structlog.get_logger()

BINARY_OPERATORS = "+-*/^"

_CONSTANTS = {
    Constant.PI: as_decimal(math.pi),
    Constant.E: as_decimal(math.e),
}


class CalculationError(Exception):
    """Fallo al procesar un lote de comandos; el motor quedó en cero."""


class ResultOverflowError(CalculationError, OverflowError):
    """El resultado tiene más dígitos enteros de los que admite el formato."""


@dataclass(frozen=True)
class CalculationResult:
    """Instantánea inmutable de la fórmula y la pantalla."""

    formula: str
    display: str


class CalculationEngine:
    """Traduce comandos de teclado en fórmula y valor de pantalla."""

    def __init__(self, config: DecimalFormatConfig | None = None, evaluator=None):
        self._evaluator = (
            evaluator if evaluator is not None else FormulaEvaluator(PythonMathProvider())
        )
        self._memory: Decimal | None = None
        self._use_format(AdaptiveNumberFormatter(config))
        self.reset_to(0)

    # ── Propiedades ──────────────────────────────────────────────

    @property
    def decimal_format(self) -> DecimalFormatConfig:
        return self._formatter.config

    @property
    def memory(self) -> Decimal | None:
        return self._memory

    @property
    def open_parens(self) -> int:
        return self._open_parens

    @property
    def angle_mode(self) -> str:
        return self._evaluator.angle_mode

    @angle_mode.setter
    def angle_mode(self, mode: str):
        self._evaluator.angle_mode = mode

    # ── API pública ──────────────────────────────────────────────

    def process(self, *commands: Command):
        """Procesa un lote de comandos de forma atómica.

        Ante cualquier fallo se restaura la memoria previa al lote, el
        motor vuelve a cero y se lanza CalculationError encadenada a la
        causa (ResultOverflowError si el resultado desborda).
        """
        memory = self._memory
        try:
            for command in commands:
                if isinstance(command, Memory):
                    self._process_memory(command)
                else:
                    self._process_command(command)
        except Exception as exc:
            self._memory = memory
            self.reset_to(0)
            logger.warning(
                "Lote de comandos fallido, motor reiniciado",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            if isinstance(exc, CalculationError):
                raise
            if isinstance(exc, OverflowError):
                raise ResultOverflowError(str(exc)) from exc
            raise CalculationError(str(exc)) from exc

        logger.debug(
            "Lote procesado",
            commands=len(commands),
            formula=self._formula,
            display=self._display,
        )

    def process_keys(self, keys: str):
        """Procesa teclas heredadas (un carácter por comando)."""
        try:
            commands = decode_keys(keys, self.decimal_format.decimal_separator)
        except ValueError as exc:
            self.reset_to(0)
            raise CalculationError(str(exc)) from exc
        self.process(*commands)

    def get_result(self) -> CalculationResult:
        return CalculationResult(self._render_formula(), self._display)

    def is_legal_command(self, character: str) -> bool:
        return decode_command(character, self.decimal_format.decimal_separator) is not None

    def reset_to(self, value=0):
        self._formula = ""
        self._open_parens = 0
        self._number_entered = False
        self._last_operation: str | None = None
        self._function_applied = False
        self._show(as_decimal(value if value is not None else 0))

    def set_decimal_format(self, config: DecimalFormatConfig):
        """Cambia el formato conservando el valor numérico actual.

        Un número a medio teclear conserva su texto (incluido un separador
        decimal final) con los nuevos símbolos; un valor calculado se vuelve
        a formatear desde su valor exacto.
        """
        typing = self._number_entered and self._last_value is None
        value = Decimal(0)
        if not typing:
            try:
                value = self._last_value if self._last_value is not None else self._current_value()
            except FormatError:
                pass

        previous = self.decimal_format
        self._use_format(AdaptiveNumberFormatter(config))
        symbols = str.maketrans({
            previous.decimal_separator: config.decimal_separator,
            previous.grouping_separator: None,
        })
        self._formula = self._formula.translate(symbols)
        if typing:
            self._display = self._display.translate(symbols)
        else:
            self._show(value)

        logger.info(
            "Formato decimal actualizado",
            decimal_separator=config.decimal_separator,
            grouping_used=config.grouping_used,
            max_length=config.max_length,
        )

    def compute(self) -> Decimal:
        """Completa la fórmula como '=', devuelve el valor y reinicia.

        A diferencia de '=', no repite la última operación: tras un
        resultado devuelve ese resultado.
        """
        try:
            if self._last_operation is not None or self._function_applied:
                if not self._last_char_is(")") and (
                    self._number_entered or self._ends_with_operator()
                ):
                    self._formula += self._current_value_text()
                if self._formula:
                    self._close_all_parentheses()
                    self._calculate()
            if self._last_value is not None:
                return self._last_value
            return self._current_value()
        except CalculationError:
            raise
        except OverflowError as exc:
            raise ResultOverflowError(str(exc)) from exc
        except Exception as exc:
            raise CalculationError(str(exc)) from exc
        finally:
            self.reset_to(0)

    # ── Despacho de comandos ─────────────────────────────────────

    def _process_command(self, command: Command):
        if isinstance(command, Digit):
            self._enter_digit(command.value)
        elif isinstance(command, Operator):
            if command is Operator.PERCENT:
                self._apply_percent()
            else:
                self._apply_operator(command.value)
        elif isinstance(command, Function):
            self._apply_function(command)
        elif isinstance(command, Constant):
            self._apply_constant(command)
        elif command is Key.DECIMAL_SEPARATOR:
            self._enter_separator()
        elif command is Key.BACKSPACE:
            self._backspace()
        elif command is Key.SIGN:
            self._toggle_sign()
        elif command is Key.EQUALS:
            self._equals()
        elif command is Key.OPEN_PAREN:
            self._open_paren()
        elif command is Key.CLOSE_PAREN:
            self._close_paren()
        elif command is Key.CLEAR:
            self.reset_to(0)
        elif command is Key.CLEAR_ENTRY:
            self._clear_entry()
        else:
            raise ValueError(f"Comando desconocido: {command!r}")

        # La repetición de '=' solo sobrevive a pulsaciones de '='
        if (
            command is not Key.EQUALS
            and self._last_operation is not None
            and len(self._last_operation) > 1
        ):
            self._last_operation = None

    def _process_memory(self, command: Memory):
        memory = self._memory if self._memory is not None else Decimal(0)

        if command is Memory.CLEAR:
            self._memory = None
        elif command is Memory.RECALL:
            self._show(memory)
        elif command is Memory.STORE:
            self._memory = self._current_value()
        elif command is Memory.ADD:
            self._memory = memory + self._current_value()
        elif command is Memory.SUBTRACT:
            self._memory = memory - self._current_value()
        else:
            raise ValueError(f"Comando de memoria desconocido: {command!r}")

    # ── Entrada de números ───────────────────────────────────────

    def _enter_digit(self, digit: int):
        if self._last_char_is(")") and not self._function_applied:
            return

        if not self._number_entered or self._function_applied:
            self._display = ""
            if not self._ends_with_operator():
                self._clear_formula()

        self._display = re.sub(r"^0(?=\d)", "", self._display + str(digit))
        self._mark_entered()

    def _enter_separator(self):
        if self._last_char_is(")") and not self._function_applied:
            return

        separator = self.decimal_format.decimal_separator
        if not self._number_entered or self._function_applied:
            self._display = "0" + separator
            if not self._ends_with_operator():
                self._clear_formula()
        elif separator not in self._display:
            self._display += separator

        self._mark_entered()

    def _backspace(self):
        if self._last_char_is(")"):
            return

        text = self._display[:-1]
        if text.endswith("E-"):
            text = text[:-2]
        elif text.endswith("E"):
            text = text[:-1]

        if text in ("", "-", NEGATE):
            self._show(Decimal(0))
            self._number_entered = False
        else:
            self._display = text
            self._last_value = None
            self._number_entered = True

    def _toggle_sign(self):
        if self._current_value() != 0:
            if self._display.startswith(NEGATE):
                self._display = self._display[1:]
            else:
                self._display = NEGATE + self._display
            if self._last_value is not None:
                self._last_value = -self._last_value

        if not self._last_char_is(")"):
            self._number_entered = True

    def _mark_entered(self):
        self._number_entered = True
        self._function_applied = False
        self._last_value = None

    # ── Operadores ───────────────────────────────────────────────

    def _apply_operator(self, operator: str):
        if self._number_entered or not self._formula:
            self._formula += self._current_value_text()
            self._calculate()
            self._formula += operator
        elif self._ends_with_binary_operator():
            self._formula = self._formula[:-1] + operator
        elif not self._last_char_is("("):
            self._formula += operator

        self._last_operation = operator
        self._number_entered = False
        self._function_applied = False

    def _apply_percent(self):
        if self._number_entered and self._ends_with_binary_operator():
            operator = self._formula[-1]
            self._formula = self._formula[:-1]

            left = float(self._calculate_formula())
            right = float(self._current_value())
            self._show(as_decimal(left * (right / 100)))

            self._formula += operator + self._display

        self._number_entered = False
        self._function_applied = False

    def _equals(self):
        if self._last_operation is not None or self._function_applied:
            if not self._last_char_is(")"):
                if self._number_entered or self._ends_with_operator():
                    text = self._current_value_text()
                    self._formula += text
                    if self._last_operation is not None and len(self._last_operation) == 1:
                        self._last_operation += text
                elif self._last_operation is not None and len(self._last_operation) > 1:
                    self._formula += self._current_value_text() + self._last_operation

            if self._formula:
                self._close_all_parentheses()
                self._calculate()
                self._formula = ""

        self._number_entered = False
        self._function_applied = False

    # ── Paréntesis ───────────────────────────────────────────────

    def _open_paren(self):
        if self._number_entered or self._ends_with_operand():
            return

        self._formula += "("
        self._open_parens += 1
        self._show(Decimal(0))
        self._number_entered = False
        self._function_applied = False

    def _close_paren(self):
        if self._open_parens == 0 or self._current_value() == 0:
            return

        if self._ends_with_binary_operator() and not self._number_entered:
            operator = self._formula[-1]
            self._formula = self._formula[:-1]
            self._show(self._calculate_formula())
            self._formula += operator + self._display
        elif self._number_entered or self._last_char_is("("):
            self._formula += self._current_value_text()

        self._formula += ")"
        self._open_parens -= 1
        self._calculate()
        self._number_entered = False
        self._function_applied = False

    def _close_all_parentheses(self):
        while self._open_parens > 0 and self._last_char_is("("):
            self._formula = self._formula[:-1]
            self._open_parens -= 1
        self._formula += ")" * self._open_parens
        self._open_parens = 0

    # ── Funciones y constantes ───────────────────────────────────

    def _apply_function(self, function: Function):
        name = function.value
        value = self._current_value()

        if self._number_entered or not self._formula or self._ends_with_operator():
            self._formula += f"{name}({self._current_value_text()})"
        else:
            start = self._open_expression_start()
            self._formula = f"{self._formula[:start]}{name}({self._formula[start:]})"

        self._show(self._evaluate(f"{name}({value:f})"))
        self._number_entered = False
        self._function_applied = True

    def _apply_constant(self, constant: Constant):
        if not self._ends_with_operator():
            self._clear_formula()
        self._show(_CONSTANTS[constant])
        self._number_entered = True
        self._function_applied = True

    def _clear_entry(self):
        self._show(Decimal(0))
        self._number_entered = False
        self._function_applied = False

    # ── Evaluación ───────────────────────────────────────────────

    def _calculate(self):
        self._show(self._calculate_formula())

    def _calculate_formula(self) -> Decimal:
        tail = self._formula[self._open_expression_start():]
        return self._evaluate(self._to_expression(tail))

    def _evaluate(self, expression: str) -> Decimal:
        result = self._evaluator.evaluate(expression)
        if not isinstance(result, (int, float, Decimal, str)):
            result = str(result)
        try:
            value = as_decimal(result)
        except InvalidOperation as exc:
            raise ValueError(f"Resultado no real: {result}") from exc

        if value.is_nan():
            raise ValueError("Resultado indefinido")
        if value.is_infinite():
            raise ResultOverflowError("Resultado infinito")
        self._check_overflow(value)
        return value

    def _check_overflow(self, value: Decimal):
        max_digits = self.decimal_format.max_integer_digits
        if max_digits is None:
            return

        digits = len(str(int(abs(value))))
        if digits > max_digits:
            logger.warning(
                "Desbordamiento del resultado",
                integer_digits=digits,
                max_integer_digits=max_digits,
            )
            raise ResultOverflowError(
                f"{digits} dígitos enteros superan el máximo de {max_digits}"
            )

    def _to_expression(self, formula: str) -> str:
        return self._number_re.sub(
            lambda m: self._formatter.to_plain(m.group()),
            formula.replace(NEGATE, "-"),
        )

    def _open_expression_start(self) -> int:
        """Índice donde empieza la subexpresión del último '(' sin cerrar."""
        unmatched = []
        for index, char in enumerate(self._formula):
            if char == "(":
                unmatched.append(index)
            elif char == ")" and unmatched:
                unmatched.pop()
        return unmatched[-1] + 1 if unmatched else 0

    # ── Estado y formato ─────────────────────────────────────────

    def _use_format(self, formatter: AdaptiveNumberFormatter):
        self._formatter = formatter
        config = formatter.config
        self._number_re = re.compile(
            rf"\d[\d{re.escape(config.grouping_separator)}]*"
            rf"(?:{re.escape(config.decimal_separator)}\d*)?"
            r"(?:E[+-]?\d+)?"
        )

    def _show(self, value: Decimal):
        self._display = self._to_display(value)
        self._last_value = value

    def _to_display(self, value: Decimal) -> str:
        text = self._formatter.format(value)
        return NEGATE + text[1:] if text.startswith("-") else text

    def _current_value(self) -> Decimal:
        return self._formatter.parse(self._display)

    def _current_value_text(self) -> str:
        return self._to_display(self._current_value())

    def _clear_formula(self):
        self._formula = ""
        self._open_parens = 0

    def _render_formula(self) -> str:
        spaced = re.sub(r"(?<!E)([-+%/*^])", r" \1 ", self._formula).strip()
        return spaced.replace("/", "÷").replace("*", "×")

    def _last_char_is(self, char: str) -> bool:
        return self._formula.endswith(char)

    def _ends_with_binary_operator(self) -> bool:
        return bool(self._formula) and self._formula[-1] in BINARY_OPERATORS

    def _ends_with_operator(self) -> bool:
        """La fórmula espera un operando: termina en operador o en '('."""
        return bool(self._formula) and self._formula[-1] in BINARY_OPERATORS + "("

    def _ends_with_operand(self) -> bool:
        return bool(self._formula) and (self._formula[-1].isdigit() or self._formula[-1] == ")")
