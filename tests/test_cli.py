"""
Tests for the `hbs` command line.
"""

import io
import json

import pytest

from hbs.cli import main
from tests.infrastructure import write, write_templates


@pytest.fixture(autouse=True)
def _clean_logging(reset_hbs_logging):
    yield


class TestRenderCommand:

    def test_inline_json(self, tmp_path, capsys):
        """DATA given inline as JSON"""
        tpl = write(tmp_path / "t.hbs", "Hello {{name}}!")
        assert main(["render", str(tpl), '{"name": "World"}']) == 0
        assert capsys.readouterr().out == "Hello World!"

    def test_without_data(self, tmp_path, capsys):
        """DATA is optional"""
        tpl = write(tmp_path / "t.hbs", "static[{{x}}]")
        assert main(["render", str(tpl)]) == 0
        assert capsys.readouterr().out == "static[]"

    def test_json_data_file(self, tmp_path, capsys):
        """@file.json reads JSON data"""
        tpl = write(tmp_path / "t.hbs", "{{#each xs}}{{this}};{{/each}}")
        data = write(tmp_path / "d.json", json.dumps({"xs": [1, 2]}))
        assert main(["render", str(tpl), f"@{data}"]) == 0
        assert capsys.readouterr().out == "1;2;"

    def test_yaml_data_file(self, tmp_path, capsys):
        """@file.yaml reads YAML data"""
        tpl = write(tmp_path / "t.hbs", "{{user.name}} is {{user.age}}")
        data = write(tmp_path / "d.yaml", "user:\n  name: Ann\n  age: 30\n")
        assert main(["render", str(tpl), f"@{data}"]) == 0
        assert capsys.readouterr().out == "Ann is 30"

    def test_stdin_data(self, tmp_path, capsys, monkeypatch):
        """- reads JSON from stdin"""
        tpl = write(tmp_path / "t.hbs", "{{v}}")
        monkeypatch.setattr("sys.stdin", io.StringIO('{"v": "piped"}'))
        assert main(["render", str(tpl), "-"]) == 0
        assert capsys.readouterr().out == "piped"

    def test_partials_directory(self, tmp_path, capsys):
        """--partials registers a directory of templates"""
        write_templates(tmp_path / "partials", {"card.tpl": "<{{name}}>"})
        tpl = write(tmp_path / "t.hbs", "{{> card}}")
        rc = main(["render", str(tpl), '{"name": "x"}', "--partials", str(tmp_path / "partials"), "--ext", ".tpl"])
        assert rc == 0
        assert capsys.readouterr().out == "<x>"

    def test_no_escape(self, tmp_path, capsys):
        """--no-escape turns HTML escaping off"""
        tpl = write(tmp_path / "t.hbs", "{{v}}")
        assert main(["render", str(tpl), '{"v": "<b>"}', "--no-escape"]) == 0
        assert capsys.readouterr().out == "<b>"

    def test_config_file(self, tmp_path, capsys):
        """--config loads render options from YAML"""
        tpl = write(tmp_path / "t.hbs", "{{#user}}{{name}}{{/user}}")
        cfg = write(tmp_path / "hbs.yaml", "block_fallback: section\n")
        assert main(["render", str(tpl), '{"user": {"name": "Ann"}}', "--config", str(cfg)]) == 0
        assert capsys.readouterr().out == "Ann"

    def test_strict_failure(self, tmp_path, capsys):
        """--strict errors go to stderr with exit code 2"""
        tpl = write(tmp_path / "t.hbs", "{{> missing}}")
        assert main(["render", str(tpl), "--strict"]) == 2
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "UnknownPartial" in captured.err

    def test_syntax_error(self, tmp_path, capsys):
        """Syntax errors report the kind and location"""
        tpl = write(tmp_path / "t.hbs", "line\n{{#if x}}")
        assert main(["render", str(tpl)]) == 2
        err = capsys.readouterr().err
        assert "UnclosedBlock" in err
        assert "2:1" in err

    def test_invalid_json(self, tmp_path, capsys):
        """Malformed DATA is a user error"""
        tpl = write(tmp_path / "t.hbs", "x")
        assert main(["render", str(tpl), "{not json"]) == 2
        assert "Invalid JSON" in capsys.readouterr().err

    def test_missing_data_file(self, tmp_path, capsys):
        """@file must exist"""
        tpl = write(tmp_path / "t.hbs", "x")
        assert main(["render", str(tpl), f"@{tmp_path / 'nope.json'}"]) == 2
        assert "not found" in capsys.readouterr().err

    def test_missing_template(self, tmp_path, capsys):
        """An unreadable template file is a user error"""
        assert main(["render", str(tmp_path / "nope.hbs")]) == 2
        assert "Cannot read template file" in capsys.readouterr().err

    def test_bad_config(self, tmp_path, capsys):
        """Invalid configuration values are reported"""
        tpl = write(tmp_path / "t.hbs", "x")
        cfg = write(tmp_path / "hbs.yaml", "block_fallback: loop\n")
        assert main(["render", str(tpl), "--config", str(cfg)]) == 2
        assert "block_fallback" in capsys.readouterr().err


class TestCheckCommand:

    def test_all_valid(self, tmp_path, capsys):
        """Valid templates give ok=true and exit code 0"""
        a = write(tmp_path / "a.hbs", "{{#if x}}y{{/if}}")
        b = write(tmp_path / "b.hbs", "plain")
        assert main(["check", str(a), str(b)]) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["ok"] is True
        assert [t["path"] for t in report["templates"]] == [str(a), str(b)]
        assert all(t["ok"] for t in report["templates"])

    def test_reports_errors(self, tmp_path, capsys):
        """Broken templates are listed with kind and position"""
        good = write(tmp_path / "good.hbs", "ok")
        bad = write(tmp_path / "bad.hbs", "x\n  {{/each}}")
        assert main(["check", str(good), str(bad)]) == 2
        report = json.loads(capsys.readouterr().out)
        assert report["ok"] is False
        entry = report["templates"][1]
        assert entry["ok"] is False
        assert entry["kind"] == "UnexpectedClose"
        assert (entry["line"], entry["column"]) == (2, 3)
        assert "error" not in report["templates"][0]

    def test_missing_file(self, tmp_path, capsys):
        """Unreadable files are reported, not raised"""
        assert main(["check", str(tmp_path / "nope.hbs")]) == 2
        report = json.loads(capsys.readouterr().out)
        assert report["templates"][0]["ok"] is False
        assert report["templates"][0]["error"]


def test_version(capsys):
    """-v prints the program name and version"""
    with pytest.raises(SystemExit) as exc:
        main(["-v"])
    assert exc.value.code == 0
    assert capsys.readouterr().out.startswith("hbs ")
