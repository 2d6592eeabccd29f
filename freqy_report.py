"""
Ranking and export for the phrase table produced by freqy.
"""
import pathlib
from typing import Iterable, List, Mapping, Optional, Union

import pandas as pd

from freqy import DEFAULT_DELIMITER, filter_tokens

COLUMNS = ["phrase", "count"]


def normalize_phrase(line: str, delimiter: str = DEFAULT_DELIMITER, fix_text: bool = False) -> str:
    """Builds the table key a hand-written phrase would get from the analyzer."""
    tokens = [t for t in filter_tokens(line.split(delimiter), fix_text) if t]
    return delimiter.join(tokens)


def load_exclusions(exclude_paths: Union[str, Iterable[str]],
                    delimiter: str = DEFAULT_DELIMITER,
                    fix_text: bool = False) -> set:
    """
    Load one or many exclusion files into a set of phrase keys.

    Lines are cleaned like analyzer input, so "I Will NOT!" excludes "i will not".
    Blank lines and lines starting with '#' are skipped.
    """
    if isinstance(exclude_paths, (str, bytes, pathlib.PurePath)):
        paths = [exclude_paths]
    else:
        paths = list(exclude_paths)

    excluded = set()
    for path in paths:
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if line.startswith("#"):
                    continue
                key = normalize_phrase(line, delimiter, fix_text)
                if key:
                    excluded.add(key)
    return excluded


def rank_phrases(freqs: Mapping[str, int],
                 top_n: Optional[int] = None,
                 exclude: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    Turns a phrase -> count mapping into a ranked frame.

    Parameters
    ----------
    freqs : Mapping[str, int]
        Frequency table returned by PhraseAnalyzer.
    top_n : int | None
        Keep only the first `top_n` rows. None or <= 0 keeps everything.
    exclude : Iterable[str] | None
        Exact phrases to drop before ranking.

    Rows are ordered by count descending, ties broken by phrase ascending.
    """
    df = pd.DataFrame(list(freqs.items()), columns=COLUMNS)
    if exclude:
        df = df[~df["phrase"].isin(set(exclude))]
    df = df.sort_values(["count", "phrase"], ascending=[False, True], kind="mergesort")
    if top_n is not None and top_n > 0:
        df = df.head(top_n)
    return df.reset_index(drop=True)


def format_ranking(ranking: pd.DataFrame) -> List[str]:
    return [f"{int(count):>3} - {phrase}" for phrase, count in
            zip(ranking["phrase"], ranking["count"])]


def write_csv(ranking: pd.DataFrame, output_file_path) -> None:
    """Writes the ranking as `phrase,count` CSV, creating missing parent directories."""
    out = pathlib.Path(output_file_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    ranking.to_csv(out, index=False, columns=COLUMNS, encoding='utf-8')
