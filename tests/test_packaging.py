from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")


PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


class TestInstalledModules:

    def setup_method(self):
        with PYPROJECT.open("rb") as fh:
            self.project = tomllib.load(fh)

    def test_no_generic_top_level_modules(self):
        modules = self.project["tool"]["setuptools"]["py-modules"]
        assert "main" not in modules
        assert "regression_engine_checks" not in modules

    def test_console_script_points_to_installed_module(self):
        modules = self.project["tool"]["setuptools"]["py-modules"]
        target = self.project["project"]["scripts"]["calculadora"]
        module, _, function = target.partition(":")
        assert module in modules
        assert function == "main"
        assert (PYPROJECT.parent / f"{module}.py").exists()
