"""Ingestion boundary: tabular files to raw alert batches."""

from .tabular import ParseError, load_batch, parse_csv_text, read_csv, read_jsonl

__all__ = ["ParseError", "load_batch", "parse_csv_text", "read_csv", "read_jsonl"]
