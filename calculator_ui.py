"""
Interfaz gráfica de la calculadora.

Usa tkinter. La interfaz solo reenvía comandos al motor de cálculo y
muestra la fórmula y el valor que este devuelve.
"""

import tkinter as tk
from tkinter import font as tkfont

from calculation_engine import CalculationEngine, CalculationError, ResultOverflowError
from commands import BACKSPACE, RETURN, Constant, Digit, Function, Key, Memory, Operator


OVERFLOW_TEXT = "Desbordamiento"
ERROR_TEXT = "Error"


class CalculatorApp:
    """Ventana principal de la calculadora."""

    # ── Paleta de colores ────────────────────────────────────────
    C = {
        "bg":         "#1E1E2E",
        "display_bg": "#181825",
        "num":        "#313244",
        "num_fg":     "#CDD6F4",
        "op":         "#F38BA8",
        "op_fg":      "#1E1E2E",
        "func":       "#45475A",
        "func_fg":    "#CDD6F4",
        "special":    "#585B70",
        "special_fg": "#CDD6F4",
        "equals":     "#89B4FA",
        "equals_fg":  "#1E1E2E",
        "toggle_on":  "#A6E3A1",
        "expr_fg":    "#BAC2DE",
        "result_fg":  "#A6E3A1",
        "error_fg":   "#F38BA8",
    }

    # ── Fila de memoria y funciones ──────────────────────────────
    #  Cada fila es una lista de (texto, comando, tipo_color)

    SCIENCE_ROWS = [
        [("MC", Memory.CLEAR, "special"), ("MR", Memory.RECALL, "special"),
         ("MS", Memory.STORE, "special"), ("M+", Memory.ADD, "special"),
         ("M−", Memory.SUBTRACT, "special"), ("xʸ", Operator.POW, "func")],

        [("sin", Function.SIN, "func"), ("cos", Function.COS, "func"),
         ("tan", Function.TAN, "func"), ("sinh", Function.SINH, "func"),
         ("cosh", Function.COSH, "func"), ("tanh", Function.TANH, "func")],

        [("√", Function.SQRT, "func"), ("∛", Function.CBRT, "func"),
         ("ln", Function.LN, "func"), ("log", Function.LOG, "func"),
         ("eˣ", Function.EXP, "func"), ("π", Constant.PI, "func")],
    ]

    # ── Teclado principal ────────────────────────────────────────

    KEYPAD = [
        [("CE", Key.CLEAR_ENTRY, "special"), ("C", Key.CLEAR, "special"),
         ("(", Key.OPEN_PAREN, "func"), (")", Key.CLOSE_PAREN, "func"),
         ("⌫", Key.BACKSPACE, "special")],

        [("7", Digit(7), "num"), ("8", Digit(8), "num"), ("9", Digit(9), "num"),
         ("÷", Operator.DIV, "op"), ("%", Operator.PERCENT, "func")],

        [("4", Digit(4), "num"), ("5", Digit(5), "num"), ("6", Digit(6), "num"),
         ("×", Operator.MUL, "op"), ("±", Key.SIGN, "func")],

        [("1", Digit(1), "num"), ("2", Digit(2), "num"), ("3", Digit(3), "num"),
         ("−", Operator.SUB, "op"), ("e", Constant.E, "func")],

        [("0", Digit(0), "num"), ("", Key.DECIMAL_SEPARATOR, "num"),
         ("+", Operator.ADD, "op"), ("=", Key.EQUALS, "equals")],
    ]

    # ────────────────────────────────────────────────────────────

    def __init__(self, root: tk.Tk, engine=None):
        self.root = root
        self.root.title("Calculadora")
        self.root.configure(bg=self.C["bg"])
        self.root.resizable(False, False)

        self.engine = engine if engine is not None else CalculationEngine()

        self._init_fonts()
        self._create_display()
        self._create_toggle_bar()
        self._create_science_panel()
        self._create_keypad()
        self._bind_keyboard()
        self._refresh()

    # ── Fuentes ──────────────────────────────────────────────────

    def _init_fonts(self):
        self._f_expr   = tkfont.Font(family="Consolas", size=14)
        self._f_result = tkfont.Font(family="Consolas", size=22, weight="bold")
        self._f_btn    = tkfont.Font(family="Segoe UI", size=15)
        self._f_func   = tkfont.Font(family="Segoe UI", size=12)
        self._f_small  = tkfont.Font(family="Segoe UI", size=11)

    # ── Pantalla ─────────────────────────────────────────────────

    def _create_display(self):
        frame = tk.Frame(self.root, bg=self.C["display_bg"], padx=12, pady=8)
        frame.pack(fill="x", padx=6, pady=(6, 2))

        self.formula_var = tk.StringVar()
        tk.Label(
            frame, textvariable=self.formula_var, font=self._f_expr,
            bg=self.C["display_bg"], fg=self.C["expr_fg"], anchor="e",
        ).pack(fill="x", pady=(4, 0))

        row = tk.Frame(frame, bg=self.C["display_bg"])
        row.pack(fill="x", pady=(2, 4))

        self.memory_label = tk.Label(
            row, text="", font=self._f_small,
            bg=self.C["display_bg"], fg=self.C["expr_fg"],
        )
        self.memory_label.pack(side="left")

        self.display_var = tk.StringVar(value="0")
        self.display_label = tk.Label(
            row, textvariable=self.display_var, font=self._f_result,
            bg=self.C["display_bg"], fg=self.C["result_fg"], anchor="e",
        )
        self.display_label.pack(side="right", fill="x", expand=True)

    # ── Barra de modo angular ────────────────────────────────────

    def _create_toggle_bar(self):
        frame = tk.Frame(self.root, bg=self.C["bg"])
        frame.pack(fill="x", padx=6, pady=(2, 2))

        self.angle_btn = tk.Button(
            frame, text=self.engine.angle_mode.upper(), font=self._f_small, width=6,
            bg=self.C["toggle_on"], fg=self.C["bg"],
            activebackground=self.C["toggle_on"], relief="flat",
            command=self._toggle_angle,
        )
        self.angle_btn.pack(side="left", padx=(0, 4))

    # ── Paneles de botones ───────────────────────────────────────

    def _create_science_panel(self):
        self._create_button_grid(self.SCIENCE_ROWS, self._f_func, ipady=4)

    def _create_keypad(self):
        self._create_button_grid(self.KEYPAD, self._f_btn, ipady=8, expand=True)

    def _create_button_grid(self, rows, font, ipady: int, expand: bool = False):
        frame = tk.Frame(self.root, bg=self.C["bg"])
        frame.pack(fill="both", expand=expand, padx=6, pady=2)

        max_cols = max(len(row) for row in rows)
        for c in range(max_cols):
            frame.columnconfigure(c, weight=1, uniform="key")

        separator = self.engine.decimal_format.decimal_separator
        for r, row_def in enumerate(rows):
            spans = self._compute_spans(len(row_def), max_cols)
            col_pos = 0
            for idx, (text, command, kind) in enumerate(row_def):
                btn = tk.Button(
                    frame, text=text or separator, font=font,
                    bg=self.C[kind], fg=self.C[f"{kind}_fg"],
                    activebackground=self.C["special"], relief="flat",
                    command=lambda cmd=command: self._on_command(cmd),
                )
                btn.grid(row=r, column=col_pos, columnspan=spans[idx],
                         sticky="nsew", padx=2, pady=2, ipady=ipady)
                col_pos += spans[idx]
            frame.rowconfigure(r, weight=1)

    @staticmethod
    def _compute_spans(cols_in_row: int, max_cols: int) -> list[int]:
        """Reparte max_cols entre cols_in_row botones."""
        base, extra = divmod(max_cols, cols_in_row)
        spans = [base] * cols_in_row
        # Asignar columnas extra al último botón (generalmente '=')
        spans[-1] += extra
        return spans

    # ── Atajos de teclado ────────────────────────────────────────

    def _bind_keyboard(self):
        self.root.bind("<Key>", self._on_keypress)
        self.root.bind("<Escape>", lambda _e: self._on_command(Key.CLEAR))
        self.root.bind("<Delete>", lambda _e: self._on_command(Key.CLEAR_ENTRY))

    def _on_keypress(self, event):
        char = event.char
        if event.keysym in ("Return", "KP_Enter"):
            char = RETURN
        elif event.keysym == "BackSpace":
            char = BACKSPACE
        if char and self.engine.is_legal_command(char):
            self._run(lambda: self.engine.process_keys(char))

    # ── Acciones ─────────────────────────────────────────────────

    def _on_command(self, command):
        self._run(lambda: self.engine.process(command))

    def _run(self, action):
        try:
            action()
        except ResultOverflowError:
            self._refresh(message=OVERFLOW_TEXT)
            return
        except CalculationError:
            self._refresh(message=ERROR_TEXT)
            return
        self._refresh()

    def _refresh(self, message: str | None = None):
        result = self.engine.get_result()
        self.formula_var.set(result.formula)
        if message is None:
            self.display_var.set(result.display)
            self.display_label.config(fg=self.C["result_fg"])
        else:
            self.display_var.set(message)
            self.display_label.config(fg=self.C["error_fg"])
        self.memory_label.config(text="M" if self.engine.memory is not None else "")

    # ── Modo angular ─────────────────────────────────────────────

    def _toggle_angle(self):
        mode = "rad" if self.engine.angle_mode == "deg" else "deg"
        self.engine.angle_mode = mode
        self.angle_btn.config(text=mode.upper())
