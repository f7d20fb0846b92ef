import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))
import importlib
import pathlib

import pytest

SRC = pathlib.Path(__file__).resolve().parent.parent / "src" / "ctrlprop"
SOURCES = sorted(SRC.rglob("*.py"))


@pytest.mark.parametrize("path", SOURCES, ids=lambda p: str(p.relative_to(SRC)))
def test_source_compiles(path):
    compile(path.read_text(encoding="utf-8"), str(path), "exec")


@pytest.mark.parametrize(
    "name",
    ["ctrlprop", "ctrlprop.core", "ctrlprop.propagation", "ctrlprop.costfns", "ctrlprop.simulation"],
)
def test_subpackages_import(name):
    assert importlib.import_module(name).__all__
