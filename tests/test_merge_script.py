"""
Tests for the merge_files command-line entrypoint.
"""

import importlib.util
from pathlib import Path
from unittest.mock import patch

import pytest

SCRIPT = Path(__file__).resolve().parent.parent / "src" / "scripts" / "merge_files.py"


@pytest.fixture(scope="module")
def script():
    spec = importlib.util.spec_from_file_location("merge_files_script", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestMergeScript:
    def test_success_exit_code(self, script, tmp_path):
        with patch.object(script, "MergeEngine") as engine_cls:
            engine_cls.return_value.merge_files.return_value = True
            code = script.main(["a.mp3", "b.mp3", "-o", str(tmp_path / "mix.mp3"), "--fade", "2",
                                "--config", str(tmp_path / "none.toml")])

        assert code == 0
        args, kwargs = engine_cls.return_value.merge_files.call_args
        assert args[0] == ["a.mp3", "b.mp3"]
        assert kwargs["fade_seconds"] == 2.0

    def test_failure_exit_code(self, script, tmp_path):
        with patch.object(script, "MergeEngine") as engine_cls:
            engine_cls.return_value.merge_files.return_value = False
            code = script.main(["a.mp3", "b.mp3", "-o", str(tmp_path / "mix.mp3"),
                                "--config", str(tmp_path / "none.toml")])

        assert code == 1

    def test_invalid_config(self, script, tmp_path):
        bad = tmp_path / "bad.toml"
        bad.write_text("[render]\nmp3_bitrate = 1\n")

        assert script.main(["a.mp3", "b.mp3", "-o", "mix.mp3", "--config", str(bad)]) == 2
