"""Checks on the maintenance scripts that do not need a database."""

import ast
from pathlib import Path

import pytest

SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "scripts"


def _top_level_statements(script_name):
    source = (SCRIPTS_DIR / script_name).read_text(encoding="utf-8")
    return ast.parse(source).body


def _is_load_dotenv_call(node):
    return (
        isinstance(node, ast.Expr)
        and isinstance(node.value, ast.Call)
        and isinstance(node.value.func, ast.Name)
        and node.value.func.id == "load_dotenv"
    )


@pytest.mark.unit
@pytest.mark.parametrize("script_name", ["rebuild_pipeline_counts.py", "seed_demo_data.py"])
def test_env_file_loaded_before_app_imports(script_name):
    statements = _top_level_statements(script_name)

    load_index = next(i for i, node in enumerate(statements) if _is_load_dotenv_call(node))
    app_import_indexes = [
        i
        for i, node in enumerate(statements)
        if isinstance(node, ast.ImportFrom) and (node.module or "").startswith("app")
    ]

    assert app_import_indexes
    assert load_index < min(app_import_indexes)
