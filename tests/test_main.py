"""Tests for the subcommand dispatcher and the CLI front ends."""

from pathlib import Path
from unittest import mock

import pytest
import yaml

from clipedit.errors import StageExecutionError


def _write_manifest(tmp_path, data):
    path = tmp_path / "edit.yaml"
    path.write_text(yaml.dump(data))
    return path


class TestMainDispatcher:
    def test_no_subcommand_shows_help(self, capsys):
        from clipedit.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code != 0  # should error without subcommand

    def test_export_subcommand_exists(self):
        """Verify export subcommand is registered (will fail on missing --manifest)."""
        from clipedit.main import main

        with pytest.raises(SystemExit):
            main(["export"])

    def test_preview_subcommand_exists(self):
        from clipedit.main import main

        with pytest.raises(SystemExit):
            main(["preview"])

    def test_probe_subcommand_exists(self):
        from clipedit.main import main

        with pytest.raises(SystemExit):
            main(["probe"])

    def test_cut_subcommand_exists(self):
        from clipedit.main import main

        with pytest.raises(SystemExit):
            main(["cut"])

    def test_invalid_subcommand_errors(self, capsys):
        from clipedit.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent"])
        assert exc_info.value.code != 0

    def test_preview_forwards_flag(self, tmp_path):
        from clipedit.main import main

        with mock.patch("clipedit.edit_cli.main") as edit_main:
            main(["preview", "base.mp4", "--manifest", "m.yaml"])
        edit_main.assert_called_once_with(["--preview", "base.mp4", "--manifest", "m.yaml"])


class TestEditCli:
    def test_export_requires_output(self, tmp_path):
        from clipedit.edit_cli import main

        manifest = _write_manifest(tmp_path, {"speed": 2.0})
        with pytest.raises(SystemExit) as exc_info:
            main(["base.mp4", "--manifest", str(manifest)])
        assert exc_info.value.code == 2

    def test_validate(self, tmp_path, capsys):
        from clipedit.edit_cli import main

        (tmp_path / "main.mp4").write_text("x")
        (tmp_path / "outro.mp4").write_text("x")
        manifest = _write_manifest(tmp_path, {
            "paths": {"media": str(tmp_path)},
            "base": "${media}/main.mp4",
            "merge": ["${media}/outro.mp4"],
            "speed": 1.5,
        })
        main(["--manifest", str(manifest), "--validate"])
        out = capsys.readouterr().out
        assert "Edit manifest valid: main.mp4" in out
        assert "merge → effects" in out
        assert "All paths verified." in out

    def test_validate_missing_file(self, tmp_path, capsys):
        from clipedit.edit_cli import main

        (tmp_path / "main.mp4").write_text("x")
        manifest = _write_manifest(tmp_path, {"merge": [str(tmp_path / "gone.mp4")]})
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "main.mp4"), "--manifest", str(manifest), "--validate"])
        assert exc_info.value.code == 1
        assert "Missing 1 input file" in capsys.readouterr().err

    def test_no_base_anywhere(self, tmp_path, capsys):
        from clipedit.edit_cli import main

        manifest = _write_manifest(tmp_path, {"speed": 2.0})
        with pytest.raises(SystemExit):
            main(["--manifest", str(manifest), "--validate"])
        assert "No base video" in capsys.readouterr().err

    def test_cli_base_overrides_manifest(self, tmp_path):
        from clipedit.edit_cli import main

        manifest = _write_manifest(tmp_path, {"base": "/manifest/base.mp4", "speed": 2.0})
        with mock.patch("clipedit.edit_cli.export", return_value=tmp_path / "o.mp4") as export:
            main(["cli.mp4", "--manifest", str(manifest), "--output", str(tmp_path / "o.mp4")])
        assert export.call_args[0][0] == "cli.mp4"

    def test_preview_without_output(self, tmp_path):
        from clipedit.edit_cli import main

        manifest = _write_manifest(tmp_path, {"speed": 2.0})
        with mock.patch("clipedit.edit_cli.preview", return_value=tmp_path / "p.mp4") as preview:
            main(["b.mp4", "--manifest", str(manifest), "--preview",
                  "--preview-dir", str(tmp_path)])
        assert preview.call_args.kwargs["preview_dir"] == str(tmp_path)

    def test_pipeline_error_exits_1(self, tmp_path, capsys):
        from clipedit.edit_cli import main

        manifest = _write_manifest(tmp_path, {"speed": 2.0})
        failure = StageExecutionError("effects", "Conversion failed!")
        with mock.patch("clipedit.edit_cli.export", side_effect=failure):
            with pytest.raises(SystemExit) as exc_info:
                main(["b.mp4", "--manifest", str(manifest), "--output", str(tmp_path / "o")])
        assert exc_info.value.code == 1
        assert "Stage 'effects' failed" in capsys.readouterr().err


class TestCutCli:
    def test_end_before_start(self, tmp_path):
        from clipedit.cut_cli import main

        with pytest.raises(SystemExit) as exc_info:
            main(["src.mp4", "--start", "5", "--end", "2", "--output", str(tmp_path / "o.mp4")])
        assert exc_info.value.code == 2

    def test_missing_source(self, tmp_path, capsys):
        from clipedit.cut_cli import main

        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "nope.mp4"), "--start", "0", "--end", "2",
                  "--output", str(tmp_path / "o.mp4")])
        assert exc_info.value.code == 1
        assert "Source video file not found" in capsys.readouterr().err


class TestProbeCli:
    def test_failure_exits_1(self, tmp_path, capsys):
        from clipedit.probe_cli import main

        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "nope.mp4")])
        assert exc_info.value.code == 1
        assert "FAIL" in capsys.readouterr().err

    def test_prints_info(self, capsys):
        from clipedit.probe_cli import main
        from conftest import make_info

        with mock.patch("clipedit.probe_cli.probe", return_value=make_info("/m/a.mp4")):
            main(["/m/a.mp4"])
        out = capsys.readouterr().out
        assert "a.mp4: 10.000s" in out
        assert "320x240 @ 30.0fps" in out
        assert "[video, audio]" in out
