import io

import pytest

from freqy_cli import NO_INPUT_MSG, NOT_ENOUGH_DATA_MSG, __version__, main


class TtyInput(io.StringIO):
    """Stands in for an interactive terminal on stdin."""

    def isatty(self):
        return True


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["-V"], stdin=io.StringIO(""))
    assert exc.value.code == 0
    assert f"freqy version {__version__}" in capsys.readouterr().out


def test_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["-h"], stdin=io.StringIO(""))
    assert exc.value.code == 0
    assert "usage" in capsys.readouterr().out.lower()


def test_missing_file_argument_is_usage_error(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["-f"], stdin=io.StringIO(""))
    assert exc.value.code == 2
    assert "expected at least one argument" in capsys.readouterr().err


def test_no_files_and_terminal_stdin(capsys):
    assert main([], stdin=TtyInput()) == 2
    out = capsys.readouterr().out
    assert NO_INPUT_MSG in out
    assert "usage" in out.lower()


def test_stdin_input(capsys):
    assert main([], stdin=io.StringIO("one two three")) == 0
    out = capsys.readouterr().out
    assert NO_INPUT_MSG not in out
    assert "Analyzing Data: <stdin>" in out
    assert "  1 - one two three" in out


def test_not_enough_data(capsys):
    assert main([], stdin=io.StringIO("one")) == 0
    assert NOT_ENOUGH_DATA_MSG in capsys.readouterr().out


def test_files_are_deduplicated(write_text, capsys):
    first = write_text("file1.txt", "a b c a b c")
    second = write_text("file2.txt", "a b c")

    assert main(["-f", first, second, first], stdin=TtyInput()) == 0
    out = capsys.readouterr().out
    assert f"Analyzing Data: {first}, {second}\n" in out
    # second file continues the window left by the first
    assert "  3 - a b c" in out
    assert "  2 - b c a" in out


def test_positional_and_option_files_merge(write_text, capsys):
    first = write_text("mine.txt", "one two three")
    second = write_text("yours.txt", "four five six")

    assert main([first, "--reset-between-files", "-f", second, first], stdin=TtyInput()) == 0
    out = capsys.readouterr().out
    assert f"Analyzing Data: {second}, {first}\n" in out
    assert "  1 - four five six" in out
    assert "  1 - one two three" in out
    assert "six one two" not in out


def test_number_limits_output(capsys):
    assert main(["-n", "1"], stdin=io.StringIO("a b c a b c a b c")) == 0
    out = capsys.readouterr().out
    assert "  3 - a b c" in out
    assert "b c a" not in out


def test_width_and_adaptive(capsys):
    assert main(["-w", "2", "--adaptive", "-b", "1"], stdin=io.StringIO("x y x y")) == 0
    out = capsys.readouterr().out
    assert "  2 - x y" in out
    assert "  1 - y x" in out


def test_verbose_shows_options(capsys):
    assert main(["-v"], stdin=io.StringIO("one two three")) == 0
    out = capsys.readouterr().out
    assert "verbose = True" in out
    assert "Start at" in out
    assert "Finished at" in out


def test_invalid_width_is_reported(capsys):
    assert main(["-w", "0"], stdin=io.StringIO("a b c")) == 2
    assert "ERROR: phrase_width must be positive" in capsys.readouterr().err


def test_unreadable_file_fails_the_run(tmp_path, capsys):
    bad = tmp_path / "bad.txt"
    bad.write_bytes(b"\xff\xff\xff")
    assert main([str(bad)], stdin=TtyInput()) == 1
    assert "ERROR:" in capsys.readouterr().err


def test_csv_and_exclusions(tmp_path, capsys):
    exclude = tmp_path / "exclude.txt"
    exclude.write_text("a b c\n", encoding="utf-8")
    out_csv = tmp_path / "out" / "phrases.csv"

    code = main(["--exclude-file", str(exclude), "--csv", str(out_csv)],
                stdin=io.StringIO("a b c a"))
    assert code == 0

    out = capsys.readouterr().out
    assert "a b c" not in out.replace("Analyzing Data", "")
    assert "  1 - b c a" in out
    assert out_csv.read_text(encoding="utf-8").splitlines() == ["phrase,count", "b c a,1"]


def test_invalid_utf8_on_stdin_fails_the_run(capsys):
    # a locale-decoded stdin would otherwise let the bad bytes through as text
    raw = io.TextIOWrapper(io.BytesIO(b"one two \xff\xfe three four"),
                           encoding="utf-8", errors="surrogateescape")
    assert main([], stdin=raw) == 1
    assert "ERROR: 'utf-8' codec can't decode" in capsys.readouterr().err


def test_binary_backed_stdin_is_read_as_utf8(capsys):
    raw = io.TextIOWrapper(io.BytesIO("Über alles gut".encode("utf-8")), encoding="latin-1")
    assert main([], stdin=raw) == 0
    assert "  1 - über alles gut" in capsys.readouterr().out


def test_everything_excluded_is_not_enough_data(tmp_path, capsys):
    exclude = tmp_path / "exclude.txt"
    exclude.write_text("One two THREE.\n", encoding="utf-8")
    assert main(["--exclude-file", str(exclude)], stdin=io.StringIO("one two three")) == 0
    out = capsys.readouterr().out
    assert NOT_ENOUGH_DATA_MSG in out
    assert "1 - one two three" not in out
