"""Proveedor matemático de precisión arbitraria para FormulaEvaluator."""

from __future__ import annotations

import re

from formula_evaluator import ANGLE_MODES

try:
    from mpmath import mp
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "mpmath no está instalado. Instala con: pip install mpmath"
    ) from exc


class MPMathProvider:
    """Proveedor matemático basado en mpmath.

    Evalúa la fórmula completa con ``digits`` dígitos significativos de
    trabajo; el motor de cálculo redondea después el resultado al
    formato de la pantalla.
    """

    def __init__(self, angle_mode: str = "deg", digits: int = 30):
        self.angle_mode = angle_mode
        self.digits = max(15, digits)

    @property
    def angle_mode(self) -> str:
        return self._angle_mode

    @angle_mode.setter
    def angle_mode(self, mode: str):
        if mode not in ANGLE_MODES:
            raise ValueError("El modo debe ser 'rad' o 'deg'")
        self._angle_mode = mode

    def _trig(self, fn):
        mode = self._angle_mode

        def wrapped(x):
            value = mp.radians(x) if mode == "deg" else x
            return fn(value)

        return wrapped

    @staticmethod
    def _non_negative(fn):
        def wrapped(x):
            if x < 0:
                raise ValueError("La raíz cuadrada no admite argumentos negativos")
            return fn(x)

        return wrapped

    @staticmethod
    def _log(fn):
        def wrapped(x):
            if x <= 0:
                raise ValueError("El logaritmo requiere un argumento positivo")
            return fn(x)

        return wrapped

    @staticmethod
    def _cbrt(x):
        return -mp.cbrt(-x) if x < 0 else mp.cbrt(x)

    def build_namespace(self) -> dict:
        return {
            "sin": self._trig(mp.sin),
            "cos": self._trig(mp.cos),
            "tan": self._trig(mp.tan),
            "sinh": mp.sinh,
            "cosh": mp.cosh,
            "tanh": mp.tanh,
            "sqrt": self._non_negative(mp.sqrt),
            "cbrt": self._cbrt,
            "ln": self._log(mp.log),
            "log": self._log(mp.log10),
            "exp": mp.exp,
            "mpf": mp.mpf,
            "pi": mp.mpf(mp.pi),
            "e": mp.mpf(mp.e),
        }

    @staticmethod
    def promote_literal(literal: str, after_power: bool) -> str:
        if after_power and re.fullmatch(r"\d+", literal):
            return literal
        return f'mpf("{literal}")'

    def run(self, evaluate):
        with mp.workdps(self.digits + 10):
            value = evaluate()
            if not isinstance(value, mp.mpf):
                return value
            if not mp.isfinite(value):
                if mp.isnan(value):
                    raise ValueError("Resultado indefinido")
                raise OverflowError("Resultado infinito")
            return mp.nstr(value, self.digits)
