"""
Command-line front end for freqy.

Reads text files (or text piped to stdin), counts fixed-width phrases and prints the most
frequent ones as `count - phrase` lines.
"""
import argparse
import io
import sys
from datetime import datetime
from typing import List, Optional, TextIO

from freqy import (
    DEFAULT_BATCH_SIZE, DEFAULT_DELIMITER, DEFAULT_PHRASE_WIDTH,
    AdaptivePhraseAnalyzer, ConfigError, PhraseAnalyzer,
)
from freqy_report import format_ranking, load_exclusions, rank_phrases, write_csv

__version__ = "0.1.0"

NO_INPUT_MSG = "Either specify input file(s) or pipe text to STDIN"
NOT_ENOUGH_DATA_MSG = "Not enough data"


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="freqy",
        description="Analyzes word (or phrase) frequency in text. "
                    "Accepts stdin piped text, or file(s) as arguments / via -f.")

    # Input
    ap.add_argument("paths", nargs="*", metavar="FILE", help="Text files to read")
    ap.add_argument("-f", "--files", nargs="+", default=[], metavar="FILE", help="Text files to read")

    # Phrase rules
    ap.add_argument("-n", "--number", type=int, default=100, help="Number of results to show [default = 100]")
    ap.add_argument("-w", "--width", type=int, default=DEFAULT_PHRASE_WIDTH, help="Words per phrase [default = 3]")
    ap.add_argument("-d", "--delimiter", default=DEFAULT_DELIMITER, help="Text separating words [default = space]")
    ap.add_argument("-b", "--batch-size", type=int, default=DEFAULT_BATCH_SIZE, help="Words read per batch (performance tuning)")
    ap.add_argument("--adaptive", action="store_true", help="Tune the batch size while running")
    ap.add_argument("--reset-between-files", action="store_true", help="Do not count phrases spanning two files")
    ap.add_argument("--fix-text", action="store_true", help="Repair mojibake/HTML entities with ftfy before cleaning")

    # Exclusions & output
    ap.add_argument("--exclude-file", action="append", default=[], help="Path to a list of phrases to drop from the results")
    ap.add_argument("--csv", dest="csv_path", help="Also write the full ranking to this CSV file")
    ap.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    ap.add_argument("-V", "--version", action="version", version=f"%(prog)s version {__version__}")
    return ap


def strict_utf8(stream: TextIO) -> TextIO:
    """Re-opens a byte-backed text stream as strict UTF-8, the way input files are read."""
    buffer = getattr(stream, "buffer", None)
    if buffer is None:
        return stream
    return io.TextIOWrapper(buffer, encoding="utf-8", errors="strict", newline="")


def setup_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses command-line arguments and merges file lists, keeping first-seen order."""
    args = build_parser().parse_args(argv)
    args.files = list(dict.fromkeys(args.files + args.paths))
    return args


def show_effective_options(args: argparse.Namespace) -> None:
    print("Options:")
    for name, val in sorted(vars(args).items()):
        print(f"  {name} = {val}")


def build_analyzer(args: argparse.Namespace) -> PhraseAnalyzer:
    analyzer_cls = AdaptivePhraseAnalyzer if args.adaptive else PhraseAnalyzer
    return analyzer_cls(args.delimiter, args.batch_size, args.width,
                        reset_between_sources=args.reset_between_files,
                        fix_text=args.fix_text,
                        progress=args.verbose)


def show_results(args: argparse.Namespace, freqs) -> None:
    exclude = (load_exclusions(args.exclude_file, args.delimiter, args.fix_text)
               if args.exclude_file else None)
    if args.csv_path:
        full = rank_phrases(freqs, exclude=exclude)
        write_csv(full, args.csv_path)
        print(f"[info] Wrote {len(full)} phrases to {args.csv_path}", file=sys.stderr)
    ranking = rank_phrases(freqs, top_n=args.number, exclude=exclude)
    if ranking.empty:
        print(NOT_ENOUGH_DATA_MSG)
        return
    for line in format_ranking(ranking):
        print(line)


def do_work(args: argparse.Namespace, stdin: TextIO) -> int:
    """Runs the analyzer over files or stdin and prints the results."""
    analyzer = build_analyzer(args)
    print("Analyzing Data: " + (", ".join(args.files) if args.files else "<stdin>"))

    if args.files:
        freqs = analyzer.process_files(args.files)
    else:
        freqs = analyzer.process(stdin)

    if not freqs:
        print(NOT_ENOUGH_DATA_MSG)
        return 0
    show_results(args, freqs)
    return 0


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None) -> int:
    """Entry point; returns a shell exit code."""
    stdin = strict_utf8(sys.stdin if stdin is None else stdin)
    args = setup_args(argv)

    if not args.files and stdin.isatty():
        print(NO_INPUT_MSG)
        build_parser().print_help()
        return 2

    if args.verbose:
        print(f"Start at {datetime.now()}\n")
        show_effective_options(args)

    try:
        code = do_work(args, stdin)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except (OSError, UnicodeDecodeError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        print(f"\nFinished at {datetime.now()}")
    return code


def run() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted by user.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
