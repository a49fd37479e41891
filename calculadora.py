"""Punto de entrada de la calculadora."""

import logging
import tkinter as tk

import structlog

from calculation_engine import CalculationEngine
from calculator_ui import CalculatorApp
from formula_evaluator import FormulaEvaluator, PythonMathProvider
from number_format import DecimalFormatConfig


USE_ARBITRARY_PRECISION = False
AP_DIGITS = 40

ANGLE_MODE = "deg"
DECIMAL_SEPARATOR = "."
GROUPING_SEPARATOR = ","
GROUPING_USED = True
MAX_LENGTH = 14
MAX_FRACTION_DIGITS = 10
MAX_INTEGER_DIGITS = 100

LOG_LEVEL = logging.INFO


def build_engine() -> CalculationEngine:
    if USE_ARBITRARY_PRECISION:
        from arbitrary_precision_provider import MPMathProvider

        provider = MPMathProvider(angle_mode=ANGLE_MODE, digits=AP_DIGITS)
    else:
        provider = PythonMathProvider(angle_mode=ANGLE_MODE)

    config = DecimalFormatConfig(
        decimal_separator=DECIMAL_SEPARATOR,
        grouping_separator=GROUPING_SEPARATOR,
        grouping_used=GROUPING_USED,
        max_integer_digits=MAX_INTEGER_DIGITS,
        max_fraction_digits=MAX_FRACTION_DIGITS,
        max_length=MAX_LENGTH,
    )
    return CalculationEngine(config, FormulaEvaluator(provider))


def main():
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL))

    root = tk.Tk()
    root.geometry("420x620")
    root.minsize(380, 580)
    CalculatorApp(root, engine=build_engine())
    root.mainloop()


if __name__ == "__main__":
    main()
