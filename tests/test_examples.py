"""Validate all examples work with current codebase."""

import ast
import importlib.util
import os
import pytest
from pathlib import Path
from unittest.mock import patch

EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


def _load_example(name: str):
    spec = importlib.util.spec_from_file_location(f"example_{name}", EXAMPLES_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestExamples:
    """Test all examples in the examples directory."""

    @pytest.mark.parametrize("example_file", [
        f for f in EXAMPLES_DIR.glob("*.py")
        if f.is_file()
    ])
    def test_example_parses(self, example_file: Path):
        """Test that example has no syntax errors and only imports existing names."""
        tree = ast.parse(example_file.read_text())

        for node in ast.walk(tree):
            if isinstance(node, ast.ImportFrom) and node.module and node.module.startswith("nano_shardbackup"):
                module = importlib.import_module(node.module)
                for alias in node.names:
                    assert hasattr(module, alias.name), f"{example_file.name}: {node.module}.{alias.name} missing"

    @pytest.mark.asyncio
    async def test_using_config_runs(self, temp_storage_dir, capsys):
        example = _load_example("using_config")

        await example.example_default_config(str(temp_storage_dir))
        await example.example_restore(str(temp_storage_dir))

        output = capsys.readouterr().out
        assert "Generation 0: uploaded 4/4 files" in output
        assert "Generation 1: uploaded 0/4 files" in output
        assert "Restored 2 files" in output

    def test_using_config_env(self, capsys):
        example = _load_example("using_config")

        with patch.dict(os.environ, {}, clear=True):
            example.example_env_config()

        assert "Location: s3://my-bucket/backups/collection1" in capsys.readouterr().out
