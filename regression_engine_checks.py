from calculation_engine import CalculationEngine, CalculationError, ResultOverflowError
from commands import BACKSPACE, LN, LOG, M_MINUS, M_PLUS, MR, MS, SIGN, SIN, SINH, TAN
from number_format import NEGATE, AdaptiveNumberFormatter, DecimalFormatConfig
import sys


GERMAN = DecimalFormatConfig(
	decimal_separator=",",
	grouping_separator=".",
	grouping_used=True,
	max_fraction_digits=3,
)

# (teclas, fórmula esperada sin espacios, pantalla esperada)
SCENARIOS = [
	("2+3===", "", "11"),
	("2+==", "", "6"),
	("1+(5*=", "", "26"),
	("(6+3+)", "(6+3+9)", "18"),
	("6*+", "6+", "6"),
	("50-10%", "50-5", "5"),
	("50-10%=", "", "45"),
	("50-(10%=", "", "40"),
	("800-3%", "800-24", "24"),
	("3" + SIGN + "*2=", "", NEGATE + "6"),
	("10+2=" + BACKSPACE, "", "1"),
	("1+2" + MS + "c1+3=" + M_MINUS + MR, "", NEGATE + "2"),
	("1+2" + M_PLUS + "=" + MR, "", "2"),
	("3" + SIN, "sin(3)", "0,052"),
	("3" + SIN + SINH, "sinh(sin(3))", "0,052"),
	("50+" + SIN + TAN, "tan(50+sin(50))", "0,013"),
	("50+" + SIN + TAN + "=", "", "1,225"),
	("2" + LOG + "+2" + LOG + "=", "", "0,602"),
	("3" + LOG + "π", "", "3,142"),
]

# (valor, longitud máxima, texto esperado)
FORMAT_SCENARIOS = [
	(1234567.8, 6, "1,23E6"),
	(1234567.8, 7, "1,235E6"),
	(0.00067, 6, "6,7E-4"),
	(0.0067, 6, "0,0067"),
	(-12312312300000, 6, "-1E13"),
]


def _run(keys: str, config: DecimalFormatConfig = GERMAN):
	engine = CalculationEngine(config)
	try:
		engine.process_keys(keys)
	except ResultOverflowError:
		return engine.get_result(), "overflow"
	except CalculationError:
		return engine.get_result(), "error"
	return engine.get_result(), None


def inspect_keys(keys: str) -> None:
	"""Imprime la fórmula y la pantalla tras cada tecla."""
	engine = CalculationEngine(GERMAN)

	print("Key inspection")
	print(f"keys:           {keys!r}")
	for i, key in enumerate(keys, start=1):
		try:
			engine.process_keys(key)
			status = ""
		except CalculationError as exc:
			status = f"  <- {type(exc).__name__}: {exc}"
		result = engine.get_result()
		print(f"  {i}. {key!r:10} formula={result.formula!r:24} display={result.display!r}{status}")

	print(f"open parens:    {engine.open_parens}")
	print(f"memory:         {engine.memory}")


def run_regressions() -> None:
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []

	for keys, formula, display in SCENARIOS:
		result, failure = _run(keys)
		actual_formula = result.formula.replace(" ", "").replace("×", "*").replace("÷", "/")
		expected_actual.append((repr(keys), f"{formula} | {display}", f"{actual_formula} | {result.display}"))
		checks.append((
			f"{keys!r} keeps formula and display",
			failure is None and actual_formula == formula and result.display == display,
		))

	result, failure = _run("π" + LOG + LN + LN)
	checks.append(("ln of a negative value fails and resets", failure == "error" and result.display == "0"))

	overflow_config = DecimalFormatConfig(max_integer_digits=6)
	result, failure = _run("999999+1=", overflow_config)
	checks.append(("seven integer digits overflow a six digit format", failure == "overflow"))

	for value, max_length, expected in FORMAT_SCENARIOS:
		formatter = AdaptiveNumberFormatter(DecimalFormatConfig(
			decimal_separator=",",
			grouping_separator=".",
			max_fraction_digits=max_length,
		))
		actual = formatter.format(value, max_length)
		expected_actual.append((f"format({value}, {max_length})", expected, actual))
		checks.append((f"format({value}, {max_length}) fits and matches", actual == expected))

	failed = [name for name, ok in checks if not ok]
	for name, ok in checks:
		print(f"{name}: {'OK' if ok else 'FAIL'}")

	print("\nExpected vs Actual:")
	for label, expected, actual in expected_actual:
		status = "OK" if expected == actual else "FAIL"
		print(f"- {label}: {status}")
		print(f"  expected: {expected}")
		print(f"  actual:   {actual}")

	if failed:
		print("\nFAILED CHECKS:")
		for name in failed:
			print(f"- {name}")
		raise SystemExit(1)

	print("\nAll regression checks passed.")


if __name__ == "__main__":
	# Uso rápido:
	#   python regression_engine_checks.py
	#   python regression_engine_checks.py --inspect "50-10%="
	if "--inspect" in sys.argv:
		try:
			keys = sys.argv[sys.argv.index("--inspect") + 1]
		except (ValueError, IndexError):
			raise SystemExit("Missing key sequence after --inspect")

		inspect_keys(keys)
	else:
		run_regressions()
