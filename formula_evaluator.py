"""Parseo y evaluación de las fórmulas confirmadas por el motor de cálculo."""

import io
import math
import re
import token
import tokenize


ANGLE_MODES = ("rad", "deg")


def _cbrt(x):
    return math.copysign(abs(x) ** (1 / 3), x)


class PythonMathProvider:
    """Provee funciones y constantes de coma flotante en un namespace seguro."""

    def __init__(self, angle_mode: str = "deg"):
        self.angle_mode = angle_mode

    @property
    def angle_mode(self) -> str:
        return self._angle_mode

    @angle_mode.setter
    def angle_mode(self, mode: str):
        if mode not in ANGLE_MODES:
            raise ValueError("El modo debe ser 'rad' o 'deg'")
        self._angle_mode = mode

    def build_namespace(self) -> dict:
        mode = self._angle_mode

        def _trig(fn):
            def w(x):
                return fn(math.radians(x) if mode == "deg" else x)

            return w

        return {
            "sin": _trig(math.sin),
            "cos": _trig(math.cos),
            "tan": _trig(math.tan),
            "sinh": math.sinh,
            "cosh": math.cosh,
            "tanh": math.tanh,
            "sqrt": math.sqrt,
            "cbrt": _cbrt,
            "ln": math.log,
            "log": math.log10,
            "exp": math.exp,
            "pi": math.pi,
            "e": math.e,
        }

    @staticmethod
    def promote_literal(literal: str, after_power: bool) -> str:
        # Aritmética de doble precisión en toda la fórmula
        if any(c in literal for c in ".eE"):
            return literal
        return literal + ".0"

    def run(self, evaluate):
        return evaluate()


class FormulaEvaluator:
    """Evalúa fórmulas infijas con + - * / ^ %, paréntesis y funciones."""

    _ALLOWED_CHARS = re.compile(r"^[\d\s+\-*/^().%a-z]*$")
    _FUNCTION_IDENTIFIERS = {
        "sin",
        "cos",
        "tan",
        "sinh",
        "cosh",
        "tanh",
        "sqrt",
        "cbrt",
        "ln",
        "log",
        "exp",
    }
    _CONSTANT_IDENTIFIERS = {"pi", "e"}
    _ALLOWED_IDENTIFIERS = _FUNCTION_IDENTIFIERS | _CONSTANT_IDENTIFIERS

    def __init__(self, provider=None):
        self._provider = provider if provider is not None else PythonMathProvider()

    @property
    def angle_mode(self) -> str:
        return self._provider.angle_mode

    @angle_mode.setter
    def angle_mode(self, mode: str):
        self._provider.angle_mode = mode

    def evaluate(self, expression: str):
        """Evalúa la expresión y devuelve el valor numérico del proveedor.

        Raises:
            ValueError: expresión inválida o función desconocida.
            ZeroDivisionError: división por cero.
            OverflowError: resultado demasiado grande.
        """
        if not expression or not expression.strip():
            raise ValueError("Expresión vacía")

        self._validate_raw_expression(expression)
        processed = self._preprocess(expression)

        def _evaluate():
            try:
                promoted = self._promote_numeric_literals(processed)
                namespace = self._provider.build_namespace()
                return eval(promoted, {"__builtins__": {}}, namespace)
            except (SyntaxError, tokenize.TokenError) as exc:
                raise ValueError("Error de sintaxis") from exc
            except NameError as exc:
                raise ValueError(f"Desconocido: {exc}") from exc

        return self._provider.run(_evaluate)

    def _validate_raw_expression(self, expression: str):
        if not self._ALLOWED_CHARS.fullmatch(expression):
            raise ValueError("Expresión contiene caracteres inválidos")
        if "**" in expression or "__" in expression:
            raise ValueError("Expresión contiene operadores no permitidos")

    def _preprocess(self, expr: str) -> str:
        expr = expr.strip()
        expr = self._replace_percentage(expr)
        expr = expr.replace("^", "**")
        self._validate_identifiers(expr)
        return expr

    @staticmethod
    def _replace_percentage(expr: str) -> str:
        expr = re.sub(
            r"((?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+\-]?\d+)?)%",
            r"(\1*0.01)",
            expr,
        )
        while True:
            updated = re.sub(r"(\([^()]+\))%", r"(\1*0.01)", expr)
            if updated == expr:
                return expr
            expr = updated

    def _validate_identifiers(self, expr: str):
        # Los exponentes de literales (1.5e-7) no son identificadores
        names = re.sub(r"(\d\.?)[eE](?=[+\-]?\d)", r"\1", expr)
        for name in re.findall(r"[a-z]+", names):
            if name not in self._ALLOWED_IDENTIFIERS:
                raise ValueError(f"Identificador no permitido: {name}")

        for function_name in self._FUNCTION_IDENTIFIERS:
            if re.search(rf"\b{function_name}\b(?!\s*\()", expr):
                raise ValueError(f"Falta '(' después de {function_name}")

        for constant_name in self._CONSTANT_IDENTIFIERS:
            if re.search(rf"(?<![\d.]){constant_name}\b\s*\(", expr):
                raise ValueError(f"{constant_name} no es una función")

    def _promote_numeric_literals(self, expression: str) -> str:
        tokens = []
        stream = io.StringIO(expression)
        previous_token_text = ""

        for tok in tokenize.generate_tokens(stream.readline):
            if tok.type == token.NUMBER:
                promoted = self._provider.promote_literal(
                    tok.string,
                    after_power=previous_token_text == "**",
                )
                tok = tokenize.TokenInfo(tok.type, promoted, tok.start, tok.end, tok.line)
            tokens.append(tok)
            if tok.type in {token.OP, token.NUMBER, token.NAME, token.STRING}:
                previous_token_text = tok.string

        return tokenize.untokenize(tokens)
