"""Tests for the lsp-snippet command."""

import io
import json

import pytest

from lsp_snippet.cli import build_parser, main


class TestMain:
    def test_prints_text(self, capsys):
        assert main(["${1:a} $1"]) == 0
        assert capsys.readouterr().out == "a a\n"

    def test_json(self, capsys):
        assert main(["${1|x,y|} $1", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data == {
            "text": "x x",
            "tabStops": [{"id": "1", "offsets": [0, 2], "values": ["x", "y"]}],
        }

    def test_var(self, capsys):
        assert main(["[$TM_SELECTED_TEXT]", "--var", "TM_SELECTED_TEXT=sel"]) == 0
        assert capsys.readouterr().out == "[sel]\n"

    def test_file(self, tmp_path, capsys):
        path = tmp_path / "hello.py"
        path.write_text("first\nsecond line\n")
        assert main(["$TM_FILENAME_BASE:$TM_LINE_NUMBER:$TM_CURRENT_LINE", "--file", str(path), "--line", "1"]) == 0
        assert capsys.readouterr().out == "hello:2:second line\n"

    def test_var_overrides_file(self, tmp_path, capsys):
        path = tmp_path / "hello.py"
        path.write_text("")
        assert main(["$TM_FILENAME", "--file", str(path), "--var", "TM_FILENAME=other"]) == 0
        assert capsys.readouterr().out == "other\n"

    def test_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("${1:from stdin}\n"))
        assert main([]) == 0
        assert capsys.readouterr().out == "from stdin\n"

    def test_cycle(self, capsys):
        assert main(["${1:$2} ${2:$1}"]) == 1
        assert "Cyclic reference" in capsys.readouterr().err

    def test_invalid_var(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["x", "--var", "no-equals"])
