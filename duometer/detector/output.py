"""Output module for duometer.

Writes scored pairs to:
- .tsv (``pathA<TAB>pathB<TAB>similarity``, one pair per line)
- .jsonl (optionally gzip-compressed)
- .parquet (columnar format)
"""
from __future__ import annotations

import gzip
import json
import time
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd
import psutil


class PairWriter:
    """Base class for scored-pair writers."""

    format = "base"

    def __init__(self, output_path: Union[str, Path]):
        self.output_path = Path(output_path)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.total_written = 0

    def write(self, a: str, b: str, similarity: float) -> None:
        """Write a single scored pair."""
        raise NotImplementedError

    def finalize(self) -> Dict[str, Any]:
        """Finish writing and return stats."""
        raise NotImplementedError

    def __enter__(self) -> "PairWriter":
        return self

    def __exit__(self, *exc) -> None:
        self.finalize()


class TSVWriter(PairWriter):
    """Tab-separated writer, one pair per line."""

    format = "tsv"

    def __init__(self, output_path: Union[str, Path]):
        super().__init__(output_path)
        self.current_file = open(self.output_path, "w", encoding="utf-8")

    def write(self, a: str, b: str, similarity: float) -> None:
        self.current_file.write(f"{a}\t{b}\t{similarity}\n")
        self.total_written += 1

    def finalize(self) -> Dict[str, Any]:
        if not self.current_file.closed:
            self.current_file.close()
        return {"format": self.format, "total_records": self.total_written}


class JSONLWriter(PairWriter):
    """Writer for JSON Lines: ``{"a": ..., "b": ..., "similarity": ...}``."""

    format = "jsonl"

    def __init__(self, output_path: Union[str, Path], compress: Optional[bool] = None):
        super().__init__(output_path)
        if compress is None:
            compress = self.output_path.suffix.lower() == ".gz"
        self.compress = compress
        if compress:
            self.current_file = gzip.open(self.output_path, "wt", encoding="utf-8")
        else:
            self.current_file = open(self.output_path, "w", encoding="utf-8")

    def write(self, a: str, b: str, similarity: float) -> None:
        json.dump({"a": a, "b": b, "similarity": similarity}, self.current_file, ensure_ascii=False)
        self.current_file.write("\n")
        self.total_written += 1

    def finalize(self) -> Dict[str, Any]:
        if not self.current_file.closed:
            self.current_file.close()
        return {"format": self.format, "total_records": self.total_written, "compressed": self.compress}


class ParquetWriter(PairWriter):
    """Writer for Parquet format. Pairs are buffered and written on finalize."""

    format = "parquet"

    def __init__(self, output_path: Union[str, Path], compression: str = "snappy"):
        super().__init__(output_path)
        self.compression = compression
        self.buffer: List[Dict[str, Any]] = []
        self._finalized = False

    def write(self, a: str, b: str, similarity: float) -> None:
        self.buffer.append({"a": a, "b": b, "similarity": similarity})
        self.total_written += 1

    def finalize(self) -> Dict[str, Any]:
        if not self._finalized:
            df = pd.DataFrame(self.buffer, columns=["a", "b", "similarity"])
            df.to_parquet(self.output_path, compression=self.compression, index=False)
            self.buffer = []
            self._finalized = True
        return {"format": self.format, "total_records": self.total_written, "compression": self.compression}


def create_writer(output_path: Union[str, Path], format: str = "auto", **kwargs) -> PairWriter:
    """
    Create appropriate writer based on format.

    Args:
        output_path: Output file path
        format: Output format ('tsv', 'jsonl', 'parquet', 'auto')
        **kwargs: Format-specific options
    """
    output_path = Path(output_path)

    if format == "auto":
        suffix = output_path.suffix.lower()
        if suffix in [".jsonl", ".json", ".gz"]:
            format = "jsonl"
        elif suffix == ".parquet":
            format = "parquet"
        else:
            format = "tsv"

    if format == "tsv":
        return TSVWriter(output_path, **kwargs)
    elif format == "jsonl":
        return JSONLWriter(output_path, **kwargs)
    elif format == "parquet":
        return ParquetWriter(output_path, **kwargs)
    else:
        raise ValueError(f"Unsupported format: {format}")


class RunStats:
    """Track statistics of one detection run."""

    def __init__(self):
        self.start_time = time.time()
        self.end_time: Optional[float] = None
        self.total_documents = 0
        self.total_candidates = 0
        self.total_written = 0
        self.failures: Dict[str, str] = {}
        self.seed: Optional[int] = None

    def add_failures(self, failures: Mapping[str, str]) -> None:
        """Record failed documents as ``{name: reason}``."""
        self.failures.update(failures)

    def finish(self) -> None:
        self.end_time = time.time()

    def get_summary(self) -> Dict[str, Any]:
        end = self.end_time if self.end_time is not None else time.time()
        elapsed = end - self.start_time
        process = psutil.Process()
        return {
            "seed": self.seed,
            "documents": self.total_documents,
            "failed_documents": len(self.failures),
            "failures": dict(self.failures),
            "candidate_pairs": self.total_candidates,
            "pairs_written": self.total_written,
            "processing_time_seconds": elapsed,
            "documents_per_second": self.total_documents / max(elapsed, 1e-9),
            "memory_mb": process.memory_info().rss / 1024 / 1024,
        }

    def save_stats(self, output_path: Union[str, Path]) -> Path:
        """Save statistics next to *output_path* as ``<stem>_stats.json``."""
        output_path = Path(output_path)
        stats_path = output_path.parent / f"{output_path.stem}_stats.json"
        with open(stats_path, "w", encoding="utf-8") as f:
            json.dump(self.get_summary(), f, indent=2, ensure_ascii=False)
        return stats_path
