"""duometer command-line interface.

Usage
-----
$ duometer detect -i corpus/ -o pairs.tsv
$ duometer detect -i old_corpus/ -i new_corpus/ -o pairs.tsv -s 6 -r 42
$ duometer run config.yml

The *detect* command looks for near-duplicates within one collection, or
across two when ``--input`` is given twice. An input is either a directory
(every file below it is a document) or a file listing one document path per
line.

The *run* command takes the same options from a YAML configuration file.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from . import __version__
from .config import ConfigError, DetectionConfig, load_config, resolve_seed
from .detector.candidates import create_candidate_generator
from .detector.dedup import MinHashDetection, filter_threshold
from .detector.file_ingest import assign_ids, list_documents
from .detector.output import RunStats, create_writer
from .detector.sources import FileShingleSource

logger = logging.getLogger("duometer")

# -----------------------------------------------------------
# Helpers
# -----------------------------------------------------------


def _setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def run_detection(config: DetectionConfig) -> RunStats:
    """Run one detection described by *config* and write the surviving pairs."""
    config.validate()
    seed = resolve_seed(config.seed)
    stats = RunStats()
    stats.seed = seed

    docs_a = list_documents(config.inputs[0])
    docs_b = list_documents(config.inputs[1]) if len(config.inputs) == 2 else None
    ids_a, ids_b, id_to_path = assign_ids(docs_a, docs_b)

    source = FileShingleSource(id_to_path, ngram_size=config.ngram_size, plain_text=config.plain_text)
    detector = MinHashDetection(
        source,
        create_candidate_generator(config.super_shingles),
        workers=config.workers,
        include_within=config.include_within,
        show_progress=config.verbose,
    )
    pairs = filter_threshold(detector.detect(ids_a, ids_b, config.num_perm, seed), config.threshold)

    with create_writer(config.output, format=config.output_format) as writer:
        for a, b, sim in pairs:
            writer.write(str(id_to_path[a]), str(id_to_path[b]), sim)

    stats.total_documents = detector.num_documents
    stats.total_candidates = detector.num_candidates
    stats.total_written = writer.total_written
    stats.add_failures({source.describe(doc_id): err.reason for doc_id, err in detector.failures.items()})
    stats.finish()
    return stats


def _report(stats: RunStats, config: DetectionConfig, save_stats: bool) -> None:
    summary = stats.get_summary()
    print(
        f"Compared {summary['documents']:,} documents "
        f"({summary['candidate_pairs']:,} candidate pairs) in "
        f"{summary['processing_time_seconds']:.2f}s using seed {summary['seed']}."
    )
    print(f"Wrote {summary['pairs_written']:,} pairs with similarity >= {config.threshold} to {config.output}")
    if stats.failures:
        print(f"{len(stats.failures)} document(s) could not be processed:", file=sys.stderr)
        for name, reason in sorted(stats.failures.items()):
            print(f"  {name}: {reason}", file=sys.stderr)
    if save_stats:
        stats_path = stats.save_stats(config.output)
        print(f"Detailed stats saved to {stats_path}")


# -----------------------------------------------------------
# Commands
# -----------------------------------------------------------


def _cmd_detect(args: argparse.Namespace) -> DetectionConfig:
    return DetectionConfig(
        inputs=[Path(p) for p in args.input],
        output=Path(args.output),
        ngram_size=args.ngram_size,
        num_perm=args.hash_func,
        seed=args.random_seed,
        super_shingles=args.super_shingles,
        threshold=args.threshold,
        plain_text=args.plain_text,
        include_within=args.within,
        workers=args.workers,
        output_format=args.format,
        verbose=args.verbose,
    )


def _cmd_run(args: argparse.Namespace) -> DetectionConfig:
    config = load_config(args.config)
    config.verbose = config.verbose or args.verbose
    return config


# -----------------------------------------------------------
# Entrypoint
# -----------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    defaults = DetectionConfig()
    parser = argparse.ArgumentParser(
        prog="duometer",
        description="Find near-duplicate documents with MinHash",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(required=True, dest="cmd")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--save-stats", action="store_true", help="Save run statistics to JSON next to the output")
    common.add_argument("--verbose", action="store_true", help="Print extra information during processing")
    common.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")

    p_detect = sub.add_parser("detect", parents=[common], help="Detect near-duplicate documents")
    p_detect.add_argument("-i", "--input", action="append", required=True, metavar="<file|dir>",
                          help="File listing documents or a directory to look for duplicates "
                               "(if set twice, look for duplicates across two lists/directories)")
    p_detect.add_argument("-o", "--output", required=True, metavar="<file>", help="Output file")
    p_detect.add_argument("-n", "--ngram-size", type=int, default=defaults.ngram_size, metavar="<size>",
                          help=f"N-gram size for shingling (default: {defaults.ngram_size})")
    p_detect.add_argument("-f", "--hash-func", type=int, default=defaults.num_perm, metavar="<number>",
                          help=f"Number of hashing functions in minhash (default: {defaults.num_perm})")
    p_detect.add_argument("-r", "--random-seed", type=int, default=None, metavar="<seed>",
                          help="Random seed (default: random, reported in the summary)")
    p_detect.add_argument("-s", "--super-shingles", type=int, default=None, metavar="<size>",
                          help="Compare pairs based on common super-shingles of a given size")
    p_detect.add_argument("-t", "--threshold", type=float, default=defaults.threshold, metavar="<value>",
                          help=f"Similarity threshold for a pair to be listed in the output (default: {defaults.threshold})")
    p_detect.add_argument("-p", "--plain-text", action="store_true", help="The files contain plain text only")
    p_detect.add_argument("--within", action="store_true",
                          help="With two inputs, also report pairs inside each input")
    p_detect.add_argument("--workers", type=int, default=defaults.workers,
                          help=f"Threads used to build signatures (default: {defaults.workers})")
    p_detect.add_argument("--format", default=defaults.output_format,
                          choices=["auto", "tsv", "jsonl", "parquet"],
                          help="Output format (default: auto-detect from extension, TSV otherwise)")
    p_detect.set_defaults(func=_cmd_detect)

    p_run = sub.add_parser("run", parents=[common], help="Run detection from a YAML configuration file")
    p_run.add_argument("config", type=Path, help="Path to YAML configuration file")
    p_run.set_defaults(func=_cmd_run)

    return parser


def main(argv: List[str] | None = None) -> None:  # noqa: D401 – simple
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = args.func(args)
        _setup_logging(verbose=config.verbose, quiet=args.quiet)
        stats = run_detection(config)
    except (ConfigError, FileNotFoundError) as e:
        parser.exit(2, f"duometer: error: {e}\n")

    _report(stats, config, args.save_stats)
    logger.debug("Run summary: %s", json.dumps(stats.get_summary(), default=str))


if __name__ == "__main__":  # pragma: no cover
    main()
