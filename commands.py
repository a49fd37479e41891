"""Comandos que acepta el motor de cálculo y su decodificador heredado."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


SIGN = "±"
BACKSPACE = "\b"
RETURN = "\r"

MS = "\u0001"
MR = "\u0002"
MC = "\u0003"
M_PLUS = "\u0004"
M_MINUS = "\u0005"

SIN = "\ue000"
COS = "\ue001"
TAN = "\ue002"
SINH = "\ue003"
COSH = "\ue004"
TANH = "\ue005"
SQRT = "\ue006"
CBRT = "\ue007"
LN = "\ue008"
LOG = "\ue009"
EXP = "\ue00a"

PI = "π"
EULER = "\ue010"


@dataclass(frozen=True)
class Digit:
    value: int

    def __post_init__(self):
        if not isinstance(self.value, int) or not 0 <= self.value <= 9:
            raise ValueError(f"Dígito fuera de rango: {self.value!r}")


class Key(Enum):
    DECIMAL_SEPARATOR = "decimal_separator"
    EQUALS = "equals"
    CLEAR = "clear"
    CLEAR_ENTRY = "clear_entry"
    BACKSPACE = "backspace"
    SIGN = "sign"
    OPEN_PAREN = "("
    CLOSE_PAREN = ")"


class Operator(Enum):
    """Operadores binarios; el valor es el carácter guardado en la fórmula."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    POW = "^"
    PERCENT = "%"


class Function(Enum):
    """Funciones unarias; el valor es el nombre usado en la fórmula."""

    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    SINH = "sinh"
    COSH = "cosh"
    TANH = "tanh"
    SQRT = "sqrt"
    CBRT = "cbrt"
    LN = "ln"
    LOG = "log"
    EXP = "exp"


class Constant(Enum):
    PI = "pi"
    E = "e"


class Memory(Enum):
    STORE = "store"
    RECALL = "recall"
    CLEAR = "clear"
    ADD = "add"
    SUBTRACT = "subtract"


Command = Union[Digit, Key, Operator, Function, Constant, Memory]


# ── Decodificador de teclas heredadas ───────────────────────────

_LEGACY_COMMANDS = {
    "+": Operator.ADD,
    "-": Operator.SUB,
    "*": Operator.MUL,
    "×": Operator.MUL,
    "/": Operator.DIV,
    "÷": Operator.DIV,
    "^": Operator.POW,
    "%": Operator.PERCENT,
    "=": Key.EQUALS,
    RETURN: Key.EQUALS,
    "c": Key.CLEAR,
    "C": Key.CLEAR,
    "e": Key.CLEAR_ENTRY,
    "E": Key.CLEAR_ENTRY,
    BACKSPACE: Key.BACKSPACE,
    SIGN: Key.SIGN,
    "(": Key.OPEN_PAREN,
    ")": Key.CLOSE_PAREN,
    MS: Memory.STORE,
    MR: Memory.RECALL,
    MC: Memory.CLEAR,
    M_PLUS: Memory.ADD,
    M_MINUS: Memory.SUBTRACT,
    SIN: Function.SIN,
    COS: Function.COS,
    TAN: Function.TAN,
    SINH: Function.SINH,
    COSH: Function.COSH,
    TANH: Function.TANH,
    SQRT: Function.SQRT,
    CBRT: Function.CBRT,
    LN: Function.LN,
    LOG: Function.LOG,
    EXP: Function.EXP,
    PI: Constant.PI,
    EULER: Constant.E,
}


def decode_command(character: str, decimal_separator: str = ".") -> Command | None:
    """Traduce una tecla heredada a Command; None si no se reconoce."""
    if len(character) != 1:
        return None
    if character == decimal_separator:
        return Key.DECIMAL_SEPARATOR
    if character in "0123456789":
        return Digit(int(character))
    return _LEGACY_COMMANDS.get(character)


def decode_keys(keys: str, decimal_separator: str = ".") -> list[Command]:
    """Decodifica una secuencia de teclas.

    Raises:
        ValueError: alguna tecla no corresponde a ningún comando.
    """
    commands = []
    for character in keys:
        command = decode_command(character, decimal_separator)
        if command is None:
            raise ValueError(f"Comando desconocido: {character!r}")
        commands.append(command)
    return commands
