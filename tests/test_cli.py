"""
Tests for the command line interface.
"""

import json

import pytest

from rtwroster import __version__
from rtwroster.cli import main
from rtwroster.config import ENV_MAPPINGS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV_MAPPINGS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config_file(tmp_path, mod_dir):
    path = tmp_path / "rtwroster.yaml"
    path.write_text(
        "id: testmod\n"
        "mode: original\n"
        f"src_dir: {mod_dir.name}\n"
        "exclude: [slave]\n",
        encoding="utf-8",
    )
    return path


class TestRequiresCommand:
    """Tests for `rtwroster requires`."""

    def test_prints_tree(self, capsys):
        assert main(["requires", "factions { roman, } and port"]) == 0
        out = capsys.readouterr().out
        assert "Factions(ids=('roman',))" in out
        assert "Port()" in out

    def test_syntax_error(self, capsys):
        assert main(["requires", "factions roman"]) == 1
        assert "Parse error" in capsys.readouterr().err


class TestRecordsCommand:
    """Tests for `rtwroster records`."""

    def test_summary(self, mod_dir, capsys):
        path = mod_dir / "data" / "export_descr_unit.txt"
        assert main(["records", str(path)]) == 0
        out = capsys.readouterr().out
        assert "Records: 5" in out
        assert "roman_hastati" in out

    def test_custom_start_keyword(self, mod_dir, capsys):
        path = mod_dir / "data" / "world" / "maps" / "campaign" / "imperial_campaign" / "descr_mercenaries.txt"
        assert main(["records", str(path), "--start", "pool"]) == 0
        assert "Records: 1" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["records", str(tmp_path / "nothing.txt")]) == 1
        assert "Extraction error" in capsys.readouterr().err


class TestBuildCommand:
    """Tests for `rtwroster build`."""

    def test_writes_json(self, config_file, tmp_path, capsys):
        out_path = tmp_path / "roster.json"
        assert main(["build", "-c", str(config_file), "-o", str(out_path)]) == 0
        assert "2 factions" in capsys.readouterr().out

        data = json.loads(out_path.read_text(encoding="utf-8"))
        assert data["id"] == "testmod"
        assert list(data["factions"]) == ["gauls", "romans_julii"]
        assert data["factions"]["gauls"]["roster"][0]["name"] == "Warband"

    def test_stdout(self, config_file, capsys):
        assert main(["build", "-c", str(config_file), "--pretty"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["pools"][0]["id"] == "italy"

    def test_load_failure(self, config_file, mod_dir, capsys):
        (mod_dir / "data" / "descr_mount.txt").unlink()
        assert main(["build", "-c", str(config_file)]) == 1
        err = capsys.readouterr().err
        assert "Build error" in err
        assert "descr_mount.txt" in err

    def test_missing_config(self, tmp_path, capsys):
        assert main(["build", "-c", str(tmp_path / "none.yaml")]) == 1
        assert "config file not found" in capsys.readouterr().err


class TestMain:
    """Tests for top-level options."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            main(["--version"])
        assert __version__ in capsys.readouterr().out


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
