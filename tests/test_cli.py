"""
Command-Line Interface Tests
============================

Tests for xbm2nokia and nokiaplay using click's CliRunner.

Serial hardware is replaced with mock ports; playback tests use
--dry-run and the simulated display.
"""

import pytest
from pathlib import Path
from unittest.mock import Mock, patch

from click.testing import CliRunner
from PIL import Image

from nokia_gfx.bitmap import SourceBitmap
from nokia_gfx.cli.errors import ExitCode
from nokia_gfx.cli.nokiaplay import main as nokiaplay
from nokia_gfx.cli.xbm2nokia import main as xbm2nokia
from nokia_gfx.comms import BridgePort


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep NOKIA_GFX_* settings of the developer out of the tests."""
    for name in ("WIDTH", "HEIGHT", "MODE", "DELAY_MS", "PORT", "BAUD"):
        monkeypatch.delenv(f"NOKIA_GFX_{name}", raising=False)


@pytest.fixture
def runner():
    return CliRunner()


def args(*items):
    return [str(item) for item in items]


# =============================================================================
# xbm2nokia Tests
# =============================================================================

class TestXbm2Nokia:
    """Tests for the asset converter."""

    def test_version(self, runner):
        result = runner.invoke(xbm2nokia, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_keyframe_stdout(self, runner, frame_files):
        result = runner.invoke(xbm2nokia, args("keyframe", frame_files[1]))
        assert result.exit_code == ExitCode.SUCCESS
        assert "const uint8_t x2[] PROGMEM = {" in result.output
        assert "    0x00, 0x00, 0x00, 0x20," in result.output

    def test_keyframe_files(self, runner, frame_files, tmp_path):
        out, header = tmp_path / "logo.c", tmp_path / "logo.h"
        result = runner.invoke(
            xbm2nokia,
            args("keyframe", frame_files[0], "-n", "logo", "-o", out, "--header", header),
        )
        assert result.exit_code == 0
        assert out.read_text().startswith("const uint8_t logo[] PROGMEM = {")
        assert header.read_text() == "extern const uint8_t logo[];\n"

    def test_transition(self, runner, frame_files):
        result = runner.invoke(
            xbm2nokia,
            args("transition", frame_files[1], frame_files[2], "-n", "step", "-d", "40"),
        )
        assert result.exit_code == 0
        assert ".delay = 40," in result.output
        assert "{ 90, 0x02}," in result.output

    def test_transition_size_mismatch(self, runner, frame_files, write_xbm):
        small = write_xbm("small", SourceBitmap.blank(16, 8))
        result = runner.invoke(
            xbm2nokia, args("transition", frame_files[0], small, "-n", "t"),
        )
        assert result.exit_code == ExitCode.TOOL_ERROR
        assert "Conversion error:" in result.output

    def test_animation(self, runner, frame_files, tmp_path):
        out, header = tmp_path / "gfx.c", tmp_path / "gfx.h"
        result = runner.invoke(
            xbm2nokia, args("animation", *frame_files, "-o", out, "--header", header),
        )
        assert result.exit_code == 0
        source = out.read_text()
        assert '#include "gfx.h"' in source
        assert "nokia_gfx_trans_x3_x1" in source
        assert "#define NOKIA_GFX_FRAME_COUNT 3" in header.read_text()

    def test_animation_no_loop(self, runner, frame_files):
        result = runner.invoke(xbm2nokia, args("animation", "--no-loop", *frame_files))
        assert result.exit_code == 0
        assert "nokia_gfx_trans_x2_x3" in result.output
        assert "nokia_gfx_trans_x3_x1" not in result.output

    def test_animation_one_frame(self, runner, frame_files):
        result = runner.invoke(xbm2nokia, args("animation", frame_files[0]))
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "at least two frames" in result.output

    def test_animation_bad_name(self, runner, frame_files):
        result = runner.invoke(xbm2nokia, args("animation", "-n", "my-anim", *frame_files))
        assert result.exit_code == ExitCode.TOOL_ERROR
        assert "not a valid C identifier" in result.output

    def test_images(self, runner, frame_files):
        result = runner.invoke(xbm2nokia, args("images", "-n", "icons", *frame_files[:2]))
        assert result.exit_code == 0
        assert "const uint8_t icons_x2[] PROGMEM" in result.output
        assert "icons_images[ICONS_COUNT]" in result.output

    def test_info(self, runner, frame_files):
        result = runner.invoke(xbm2nokia, args("info", *frame_files))
        assert result.exit_code == 0
        assert "84x48" in result.output
        assert "Frame bytes: 504" in result.output
        assert "x1 -> x2: 1 bytes" in result.output
        assert "x3 -> x1: 2 bytes" in result.output
        assert "Suggested mode: targeted" in result.output

    def test_info_single_frame(self, runner, frame_files):
        result = runner.invoke(xbm2nokia, args("info", frame_files[0]))
        assert result.exit_code == 0
        assert "Pages:       6" in result.output
        assert "Suggested mode" not in result.output

    def test_preview_text(self, runner, write_xbm):
        path = write_xbm("dot", SourceBitmap.from_rows(["#.", ".#"]))
        result = runner.invoke(xbm2nokia, args("preview", path))
        assert result.exit_code == 0
        assert "#.\n.#" in result.output

    def test_preview_png(self, runner, write_xbm, tmp_path):
        path = write_xbm("dot", SourceBitmap.from_rows(["#.", ".#"]))
        png = tmp_path / "dot.png"
        result = runner.invoke(xbm2nokia, args("preview", path, "-o", png, "-s", "2"))
        assert result.exit_code == 0
        assert Image.open(png).size == (4, 4)

    def test_xbm_from_png(self, runner, tmp_path):
        png = tmp_path / "art.png"
        img = Image.new("L", (8, 1), color=255)
        img.putpixel((0, 0), 0)
        img.save(png)
        result = runner.invoke(xbm2nokia, args("xbm", png))
        assert result.exit_code == 0
        assert "#define art_width 8" in result.output
        assert "0x01 };" in result.output

    def test_threshold_and_invert(self, runner, tmp_path):
        png = tmp_path / "gray.png"
        Image.new("L", (8, 1), color=100).save(png)
        result = runner.invoke(xbm2nokia, args("-t", "50", "--invert", "preview", png))
        assert result.exit_code == 0
        assert "########" in result.output

    def test_bad_xbm(self, runner, tmp_path):
        path = tmp_path / "broken.xbm"
        path.write_text("#define broken_width 8\n")
        result = runner.invoke(xbm2nokia, args("keyframe", path))
        assert result.exit_code == ExitCode.TOOL_ERROR
        assert "broken.xbm:1:1" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(xbm2nokia, args("keyframe", tmp_path / "none.xbm"))
        assert result.exit_code == ExitCode.INVALID_ARGS


# =============================================================================
# nokiaplay Tests
# =============================================================================

class TestNokiaplay:
    """Tests for the playback tool."""

    def test_ports_empty(self, runner):
        with patch("nokia_gfx.cli.nokiaplay.list_serial_ports", return_value=[]):
            result = runner.invoke(nokiaplay, ["ports"])
        assert result.exit_code == 0
        assert "No serial ports found." in result.output

    def test_ports_marks_bridge(self, runner):
        found = [BridgePort("/dev/ttyS0"), BridgePort("/dev/ttyACM0", "Uno", 0x2341, 0x0043)]
        with patch("nokia_gfx.cli.nokiaplay.list_serial_ports", return_value=found), \
                patch("nokia_gfx.cli.nokiaplay.find_bridge_port", return_value="/dev/ttyACM0"):
            result = runner.invoke(nokiaplay, ["ports", "--detailed"])
        assert result.exit_code == 0
        assert " * /dev/ttyACM0  [Arduino]  Uno, 2341:0043" in result.output
        assert "   /dev/ttyS0" in result.output
        assert "auto-detect picks: /dev/ttyACM0" in result.output

    def test_show_dry_run(self, runner, frame_files):
        result = runner.invoke(nokiaplay, args("show", "--dry-run", frame_files[1]))
        assert result.exit_code == 0
        assert "...#" + "." * 80 in result.output

    def test_show_dry_run_png(self, runner, frame_files, tmp_path):
        png = tmp_path / "lcd.png"
        result = runner.invoke(nokiaplay, args("show", "--dry-run", "--png", png, frame_files[0]))
        assert result.exit_code == 0
        assert Image.open(png).size == (84 * 4, 48 * 4)

    def test_show_wrong_size(self, runner, write_xbm):
        small = write_xbm("small", SourceBitmap.blank(16, 8))
        result = runner.invoke(nokiaplay, args("show", "--dry-run", small))
        assert result.exit_code == ExitCode.TOOL_ERROR
        assert "Display error:" in result.output

    def test_show_custom_geometry(self, runner, write_xbm):
        small = write_xbm("small", SourceBitmap.blank(16, 8).with_pixel(0, 0))
        result = runner.invoke(
            nokiaplay, args("--width", "16", "--height", "8", "show", "--dry-run", small),
        )
        assert result.exit_code == 0
        assert "#" + "." * 15 in result.output

    @pytest.mark.parametrize("mode", ["full", "targeted"])
    def test_play_dry_run(self, runner, frame_files, mode):
        result = runner.invoke(
            nokiaplay,
            args("--mode", mode, "play", "--dry-run", "--delay", "0", *frame_files),
        )
        assert result.exit_code == 0
        assert result.output.count("-- frame") == 4
        assert "-- frame 3 --" in result.output

    def test_play_one_frame(self, runner, frame_files):
        result = runner.invoke(nokiaplay, args("play", "--dry-run", frame_files[0]))
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_play_no_port(self, runner, frame_files):
        with patch("nokia_gfx.cli.nokiaplay.find_bridge_port", return_value=None):
            result = runner.invoke(nokiaplay, args("play", "--delay", "0", *frame_files))
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "auto-detect failed" in result.output

    def test_play_over_bridge(self, runner, frame_files):
        """Init sequence, keyframe and diffs are written to the serial port."""
        port = Mock()
        port.is_open = True
        port.write = Mock(side_effect=lambda data: len(data))

        with patch("nokia_gfx.cli.nokiaplay.open_serial_port", return_value=port) as opener:
            result = runner.invoke(
                nokiaplay,
                args("-p", "/dev/ttyACM0", "-b", "57600", "play", "--delay", "0", *frame_files),
            )

        assert result.exit_code == 0, result.output
        opener.assert_called_once_with("/dev/ttyACM0", baud_rate=57600)
        wire = b"".join(call.args[0] for call in port.write.call_args_list)
        init = bytes([0x00, 0x21, 0x00, 0xC8, 0x00, 0x05, 0x00, 0x40])
        assert wire.startswith(init)
        # First transition, targeted: cursor (0, 3) then data 0x20
        assert bytes([0x00, 0x83, 0x00, 0x40, 0x01, 0x20]) in wire
        assert "targeted mode" in result.output
        port.close.assert_called_once()

    def test_connection_error(self, runner, frame_files):
        from nokia_gfx.errors import ConnectionError

        error = ConnectionError("Serial port not found: /dev/ttyX")
        with patch("nokia_gfx.cli.nokiaplay.open_serial_port", side_effect=error):
            result = runner.invoke(nokiaplay, args("-p", "/dev/ttyX", "show", frame_files[0]))
        assert result.exit_code == ExitCode.TOOL_ERROR
        assert "Serial port not found" in result.output
