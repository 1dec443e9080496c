"""Tests for the command line entry point and the logging setup."""

import json
import logging

import numpy as np
import pytest

from logging_config import LOG_FILE_NAME, setup_logging
from main_app import build_parser, format_tile_grid, main
from model.hex_tileset import HexTileset


@pytest.fixture
def failing_tileset_path(tmp_path):
    """A tileset in which no tile may neighbor any other."""
    path = tmp_path / "failing.json"
    path.write_text(json.dumps({"tiles": [{"name": "a"}, {"name": "b"}]}), encoding="utf-8")
    return path


class TestFormatTileGrid:

    def test_odd_rows_are_indented(self):
        tileset = HexTileset([1.0, 1.0], [[[0, 1], [0, 1]] for _ in range(6)], tile_names=["water", "sand"])
        text = format_tile_grid(np.array([[0, 1], [1, -1]]), tileset)
        assert text == "w s\n s ."


class TestBuildParser:

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.width == 24
        assert args.height == 24
        assert args.layout == "odd-r"
        assert args.seed is None
        assert not args.bounded

    def test_unknown_layout(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--layout", "axial"])


@pytest.mark.usefixtures("restore_root_logging")
class TestMain:

    def test_generate_and_save(self, coast_tileset_path, tmp_path, capsys):
        output = tmp_path / "map.png"
        exit_code = main(
            [
                "--tileset", str(coast_tileset_path),
                "--width", "6",
                "--height", "6",
                "--seed", "3",
                "--attempts", "30",
                "--output", str(output),
            ]
        )
        assert exit_code == 0
        assert output.exists()
        out = capsys.readouterr().out
        assert "Generated with seed" in out
        assert len(out.splitlines()[0].split()) == 6

    def test_bounded_classic_single_row(self, coast_tileset_path, capsys):
        exit_code = main(
            [
                "--tileset", str(coast_tileset_path),
                "--width", "8",
                "--height", "1",
                "--layout", "classic",
                "--bounded",
                "--seed", "0",
                "--attempts", "30",
            ]
        )
        assert exit_code == 0
        assert "Generated with seed" in capsys.readouterr().out

    def test_generation_failure(self, failing_tileset_path, capsys):
        exit_code = main(["--tileset", str(failing_tileset_path), "--width", "3", "--height", "4", "--attempts", "2"])
        assert exit_code == 1
        captured = capsys.readouterr()
        assert "Generation failed after 2 attempt(s)." in captured.err

    def test_invalid_tileset_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        assert main(["--tileset", str(path)]) == 2

    def test_missing_tileset_file(self, tmp_path):
        assert main(["--tileset", str(tmp_path / "missing.json")]) == 2

    @pytest.mark.parametrize(
        "config",
        [
            {"tiles": [{"name": "a", "weight": "heavy"}]},
            {"tiles": [{"name": "a"}], "rules": [{"neighbors": {"*": ["a"]}}]},
            {"tiles": [{"name": "a"}], "rules": [{"tile": "a", "neighbors": {"*": "a"}}]},
            [{"name": "a"}],
        ],
    )
    def test_malformed_tileset(self, tmp_path, config):
        path = tmp_path / "malformed.json"
        path.write_text(json.dumps(config), encoding="utf-8")
        assert main(["--tileset", str(path), "--width", "4", "--height", "4"]) == 2

    def test_odd_height_needs_bounded_grid(self, coast_tileset_path, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--tileset", str(coast_tileset_path), "--width", "8", "--height", "7"])
        assert excinfo.value.code == 2
        assert "even grid height" in capsys.readouterr().err

        exit_code = main(
            ["--tileset", str(coast_tileset_path), "--width", "8", "--height", "7", "--bounded", "--attempts", "30"]
        )
        assert exit_code == 0

    @pytest.mark.parametrize("option", ["--width", "--height"])
    def test_size_out_of_range(self, coast_tileset_path, option):
        with pytest.raises(SystemExit) as excinfo:
            main(["--tileset", str(coast_tileset_path), option, "0"])
        assert excinfo.value.code == 2

    def test_log_file(self, coast_tileset_path, tmp_path):
        log_dir = tmp_path / "logs"
        exit_code = main(
            [
                "--tileset", str(coast_tileset_path),
                "--width", "4",
                "--height", "4",
                "--seed", "1",
                "--attempts", "30",
                "--log-dir", str(log_dir),
            ]
        )
        assert exit_code == 0
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "Generation succeeded" in (log_dir / LOG_FILE_NAME).read_text(encoding="utf-8")


@pytest.mark.usefixtures("restore_root_logging")
class TestSetupLogging:

    def test_console_only(self):
        assert setup_logging() is None
        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert root_logger.handlers[0].level == logging.WARNING

    def test_file_logging(self, tmp_path):
        log_file = setup_logging(tmp_path / "logs", console_level=logging.ERROR)
        assert log_file == tmp_path / "logs" / LOG_FILE_NAME

        logging.getLogger("model.hex_wfc").debug("cleared the grid")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text(encoding="utf-8")
        assert "cleared the grid" in content
        assert "DEBUG" in content
