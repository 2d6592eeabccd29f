"""
Freqy – streaming phrase-frequency analyzer.

This module reads text in bounded batches of delimiter-separated tokens, cleans each
token, and counts every run of `phrase_width` consecutive tokens (overlapping, stride 1)
into a frequency table. Window state survives batch and file boundaries, so memory stays
bounded by one batch plus the window plus the distinct-phrase table.

-- Dependencies --
- Required: tqdm, ftfy (ftfy is only called with fix_text=True)
"""
import io
import os
import re
import string
import sys
import time
from collections import Counter, deque
from typing import Iterable, List, Optional, TextIO

import ftfy
from tqdm import tqdm

# -----------------------------
# Constants & Regexes
# -----------------------------
DEFAULT_DELIMITER = " "
DEFAULT_BATCH_SIZE = 1000
DEFAULT_PHRASE_WIDTH = 3
DEFAULT_READ_SIZE = 64 * 1024
BATCH_HISTORY_SIZE = 64

# ASCII punctuation minus the hyphen, so "two-three" stays one token
IGNORE_CHARS = string.punctuation.replace("-", "")
IGNORE_TABLE = str.maketrans("", "", IGNORE_CHARS)
LINE_BREAK_RE = re.compile(r"\r?\n")


class ConfigError(ValueError):
    """Raised when an analyzer is constructed with invalid settings."""


def _check_positive_int(name: str, value) -> int:
    # bool is an int subclass; True is not a batch size
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


# -----------------------------
# Source Reading
# -----------------------------

class BatchReader:
    """Pull-based reader handing out raw tokens from a text stream in bounded batches.

    `read_batch()` returns at most `batch_size` tokens; an empty list means the stream
    is exhausted. The stream is read `read_size` characters at a time, and a token (or
    a multi-character delimiter) cut by a read boundary is stitched back together.
    """

    def __init__(self, stream: TextIO, delimiter: str, batch_size: int,
                 read_size: int = DEFAULT_READ_SIZE):
        if not isinstance(delimiter, str) or not delimiter:
            raise ConfigError("delimiter must be a non-empty string")
        self.stream = stream
        self.delimiter = delimiter
        self.batch_size = _check_positive_int("batch_size", batch_size)
        self.read_size = _check_positive_int("read_size", read_size)
        self._pending = deque()
        self._tail = ""
        self._exhausted = False

    @property
    def exhausted(self) -> bool:
        return self._exhausted and not self._pending

    def _fill(self, wanted: int) -> None:
        while len(self._pending) < wanted and not self._exhausted:
            chunk = self.stream.read(self.read_size)
            if not chunk:
                self._exhausted = True
                if self._tail:
                    self._pending.append(self._tail)
                    self._tail = ""
                return
            parts = (self._tail + chunk).split(self.delimiter)
            # last piece may continue in the next chunk
            self._tail = parts.pop()
            self._pending.extend(parts)

    def read_batch(self, size: Optional[int] = None) -> List[str]:
        """Returns the next batch of raw tokens, or [] at end of input."""
        size = self.batch_size if size is None else _check_positive_int("size", size)
        self._fill(size)
        take = min(size, len(self._pending))
        return [self._pending.popleft() for _ in range(take)]

    def __iter__(self):
        return self

    def __next__(self) -> List[str]:
        batch = self.read_batch()
        if not batch:
            raise StopIteration
        return batch


# -----------------------------
# Token Filtering
# -----------------------------

def clean_token(raw: str, fix_text: bool = False) -> str:
    """Strips ignorable punctuation and case-folds a single raw token."""
    if fix_text:
        raw = ftfy.fix_text(raw)
    return raw.translate(IGNORE_TABLE).casefold()


def filter_tokens(raw_tokens: Iterable[str], fix_text: bool = False) -> List[str]:
    """
    Cleans a batch of raw tokens into a new list, preserving order.

    Tokens still holding a line break after cleaning ("love\\nsandwiches") are split
    into one token per line. Tokens that clean down to "" are kept; the window counter
    skips them.
    """
    cleaned = []
    for raw in raw_tokens:
        token = clean_token(raw, fix_text)
        if "\n" in token:
            cleaned.extend(LINE_BREAK_RE.split(token))
        else:
            cleaned.append(token)
    return cleaned


# -----------------------------
# Phrase Counting
# -----------------------------

class PhraseAnalyzer:
    """
    Counts fixed-width phrases over one or more text sources.

    The sliding window and frequency table belong to the instance and keep
    accumulating across every `process*` call, so a phrase may span the end of one
    file and the start of the next. Pass `reset_between_sources=True` to clear the
    window at the start of each source instead, or call `reset()` to start over.
    """

    def __init__(self, delimiter: str = DEFAULT_DELIMITER,
                 batch_size: int = DEFAULT_BATCH_SIZE,
                 phrase_width: int = DEFAULT_PHRASE_WIDTH,
                 *,
                 reset_between_sources: bool = False,
                 fix_text: bool = False,
                 progress: bool = False):
        if not isinstance(delimiter, str):
            raise ConfigError(f"delimiter must be a string, got {type(delimiter).__name__}")
        if not delimiter:
            raise ConfigError("delimiter must not be empty")
        self._delimiter = delimiter
        self._batch_size = _check_positive_int("batch_size", batch_size)
        self._phrase_width = _check_positive_int("phrase_width", phrase_width)
        self._reset_between_sources = bool(reset_between_sources)
        self._fix_text = bool(fix_text)
        self.progress = progress

        self._window = deque()
        self._freqs = Counter()

    @property
    def delimiter(self) -> str:
        return self._delimiter

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def phrase_width(self) -> int:
        return self._phrase_width

    @property
    def reset_between_sources(self) -> bool:
        return self._reset_between_sources

    @property
    def fix_text(self) -> bool:
        return self._fix_text

    def reset(self) -> None:
        """Forgets the window and every count seen so far."""
        self._window.clear()
        self._freqs.clear()

    def frequencies(self) -> Counter:
        """Returns a copy of the phrase -> count table."""
        return Counter(self._freqs)

    def count_phrases(self, tokens: Iterable[str]) -> None:
        """Feeds cleaned tokens through the sliding window, counting each full window."""
        window = self._window
        width = self._phrase_width
        for token in tokens:
            if not token:
                continue
            window.append(token)
            if len(window) == width:
                self._freqs[self._delimiter.join(window)] += 1
                window.popleft()

    def _next_batch(self, reader: BatchReader) -> List[str]:
        return reader.read_batch(self._batch_size)

    def _analyze(self, stream: TextIO) -> None:
        if self._reset_between_sources:
            self._window.clear()
        reader = BatchReader(stream, self._delimiter, self._batch_size)
        while True:
            batch = self._next_batch(reader)
            if not batch:
                break
            self.count_phrases(filter_tokens(batch, self._fix_text))

    def process(self, stream: TextIO) -> Counter:
        """Consumes a text stream to the end and returns the accumulated table."""
        self._analyze(stream)
        return self.frequencies()

    def process_text(self, text: str) -> Counter:
        return self.process(io.StringIO(text))

    def process_files(self, paths: Iterable[str]) -> Counter:
        """
        Analyzes each file in order, accumulating into one table.

        Duplicate paths are read once. Missing files and directories are skipped with
        a warning on stderr; any other error opening or reading a file propagates.
        """
        if isinstance(paths, (str, bytes, os.PathLike)):
            paths = [paths]
        unique_paths = list(dict.fromkeys(os.fspath(p) for p in paths))
        for path in tqdm(unique_paths, desc="Analyzing files", unit="file",
                         disable=not self.progress):
            if not os.path.exists(path):
                print(f"[warn] File not found, skipping: {path}", file=sys.stderr)
                continue
            if os.path.isdir(path):
                print(f"[warn] Path is a directory, skipping: {path}", file=sys.stderr)
                continue
            with open(path, "r", encoding="utf-8", newline="") as f:
                self._analyze(f)
        return self.frequencies()


# -----------------------------
# Adaptive Batching
# -----------------------------

class AdaptivePhraseAnalyzer(PhraseAnalyzer):
    """
    PhraseAnalyzer that tunes its batch size while it runs.

    Each batch is timed; while tokens/second improves the size keeps moving the same
    way (multiplied or divided by `growth`), and when it drops the direction flips. Sizes
    stay within [min_batch_size, max_batch_size]. Counts are identical to the plain
    analyzer because batching never changes the token sequence.
    """

    def __init__(self, delimiter: str = DEFAULT_DELIMITER,
                 batch_size: int = DEFAULT_BATCH_SIZE,
                 phrase_width: int = DEFAULT_PHRASE_WIDTH,
                 *,
                 min_batch_size: int = 100,
                 max_batch_size: int = 100_000,
                 growth: float = 2.0,
                 clock=time.perf_counter,
                 **kwargs):
        super().__init__(delimiter, batch_size, phrase_width, **kwargs)
        self.min_batch_size = _check_positive_int("min_batch_size", min_batch_size)
        self.max_batch_size = _check_positive_int("max_batch_size", max_batch_size)
        if self.max_batch_size < self.min_batch_size:
            raise ConfigError("max_batch_size must be >= min_batch_size")
        if isinstance(growth, bool) or not isinstance(growth, (int, float)) or growth <= 1:
            raise ConfigError(f"growth must be a number > 1, got {growth!r}")
        self.growth = float(growth)
        self._clock = clock

        self._current_size = self._clamp(self.batch_size)
        self._direction = 1
        self._last_rate = None
        self._started = None
        self._last_batch_len = 0
        # most recent sizes only, for inspection
        self.batch_history = deque(maxlen=BATCH_HISTORY_SIZE)

    def _clamp(self, size: float) -> int:
        return max(self.min_batch_size, min(self.max_batch_size, int(size)))

    def _next_batch(self, reader: BatchReader) -> List[str]:
        now = self._clock()
        # the previous batch was read, filtered and counted since `_started`
        if self._started is not None:
            self._tune(self._last_batch_len, now - self._started)
        batch = reader.read_batch(self._current_size)
        if batch:
            self._last_batch_len = len(batch)
            self.batch_history.append(self._last_batch_len)
            self._started = now
        else:
            self._started = None
        return batch

    def _tune(self, tokens: int, elapsed: float) -> None:
        # a short final batch says nothing about the chosen size
        if tokens < self._current_size or elapsed <= 0:
            return
        rate = tokens / elapsed
        if self._last_rate is not None and rate < self._last_rate:
            self._direction = -self._direction
        self._last_rate = rate
        if self._direction > 0:
            self._current_size = self._clamp(self._current_size * self.growth)
        else:
            self._current_size = self._clamp(self._current_size / self.growth)
