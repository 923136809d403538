from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any, Dict, Iterator, List


class ParseError(ValueError):
    """Raised when tabular input cannot be parsed into a complete batch."""

    def __init__(self, message: str, line: int | None = None, source: str | None = None) -> None:
        self.line = line
        self.source = source
        where = ""
        if source:
            where += f"{source}"
        if line is not None:
            where += f":{line}" if where else f"line {line}"
        super().__init__(f"{where}: {message}" if where else message)


def parse_csv_text(text: str, source: str | None = None) -> List[Dict[str, str]]:
    """
    Parse CSV text with a header row into flat records.

    Blank lines are skipped and cells are stripped. Short rows leave the missing columns
    out of the record; rows with more cells than the header are rejected. The whole
    input is parsed before anything is returned.
    """
    reader = csv.reader(io.StringIO(text))
    try:
        header: List[str] | None = None
        rows: List[Dict[str, str]] = []
        for cells in reader:
            if not any(c.strip() for c in cells):
                continue
            if header is None:
                header = [c.strip() for c in cells]
                if any(h == "" for h in header):
                    raise ParseError("empty column name in header", reader.line_num, source)
                if len(set(header)) != len(header):
                    raise ParseError("duplicate column name in header", reader.line_num, source)
                continue
            if len(cells) > len(header):
                raise ParseError(
                    f"row has {len(cells)} cells but header has {len(header)}", reader.line_num, source
                )
            rows.append({h: c.strip() for h, c in zip(header, cells)})
    except csv.Error as e:
        raise ParseError(str(e), reader.line_num, source) from e
    if header is None:
        raise ParseError("missing header row", None, source)
    return rows


def read_csv(path: Path | str, encoding: str = "utf-8-sig") -> List[Dict[str, str]]:
    p = Path(path)
    try:
        text = p.read_text(encoding=encoding)
    except UnicodeDecodeError as e:
        raise ParseError(f"cannot decode as {encoding}: {e.reason}", None, str(p)) from e
    except OSError as e:
        raise ParseError(f"cannot read file: {e.strerror or e}", None, str(p)) from e
    return parse_csv_text(text, source=str(p))


def iter_jsonl(path: Path | str) -> Iterator[Dict[str, Any]]:
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError as e:
                    raise ParseError(f"invalid JSON: {e.msg}", lineno, str(p)) from e
                if not isinstance(obj, dict):
                    raise ParseError("expected a JSON object", lineno, str(p))
                yield obj
    except UnicodeDecodeError as e:
        raise ParseError(f"cannot decode as utf-8: {e.reason}", None, str(p)) from e
    except OSError as e:
        raise ParseError(f"cannot read file: {e.strerror or e}", None, str(p)) from e


def read_jsonl(path: Path | str) -> List[Dict[str, Any]]:
    """All records of a JSONL file; raises ParseError without returning a partial batch."""
    return list(iter_jsonl(path))


def load_batch(path: Path | str) -> List[Dict[str, Any]]:
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".csv":
        return list(read_csv(p))
    if suffix in {".jsonl", ".ndjson"}:
        return read_jsonl(p)
    raise ParseError(f"unsupported input format '{suffix or p.name}'", None, str(p))
