"""Tests for packaging and pyproject.toml correctness."""

import os
import sys
import unittest

import pytest

_ROOT = os.path.dirname(os.path.dirname(__file__))


def _load_pyproject():
    import tomllib
    with open(os.path.join(_ROOT, "pyproject.toml"), "rb") as f:
        return tomllib.load(f)


@pytest.mark.skipif(sys.version_info < (3, 11), reason="tomllib needs Python 3.11")
class TestPyproject(unittest.TestCase):
    def test_runtime_deps_declared(self):
        deps = " ".join(_load_pyproject()["project"]["dependencies"])
        for name in ("PyYAML", "Pillow", "tqdm"):
            self.assertIn(name, deps)

    def test_pytest_only_in_test_extra(self):
        data = _load_pyproject()
        self.assertFalse(any("pytest" in d for d in data["project"]["dependencies"]))
        self.assertTrue(any("pytest" in d for d in data["project"]["optional-dependencies"]["test"]))

    def test_console_script(self):
        scripts = _load_pyproject()["project"]["scripts"]
        self.assertEqual(scripts["materialbrew"], "MaterialBrew.cli:main")


class TestRequirements(unittest.TestCase):
    def test_requirements_match_runtime_stack(self):
        with open(os.path.join(_ROOT, "requirements.txt"), "r", encoding="utf-8") as f:
            lines = [
                ln.strip()
                for ln in f.readlines()
                if ln.strip() and not ln.strip().startswith("#")
            ]
        names = {ln.split(">")[0].split("=")[0] for ln in lines}
        self.assertTrue({"PyYAML", "Pillow", "tqdm"} <= names)
        self.assertFalse(any(n in names for n in ("numpy", "torch", "onnxruntime")))


class TestPackageImports(unittest.TestCase):
    def test_version(self):
        from MaterialBrew import __version__
        self.assertTrue(__version__)

    def test_main_module_importable(self):
        import MaterialBrew.__main__  # noqa: F401
