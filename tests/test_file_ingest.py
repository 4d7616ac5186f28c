"""File listing, extraction and file-backed source tests."""
from __future__ import annotations

import gzip
from pathlib import Path

import pytest

from duometer.detector.dedup import MinHashDetection
from duometer.detector.file_ingest import assign_ids, get_file_stats, list_documents, read_document
from duometer.detector.ingest import hashed_shingles
from duometer.detector.sources import DictShingleSource, ExtractionError, FileShingleSource


def test_list_directory_is_recursive_and_sorted(tmp_path: Path) -> None:
    (tmp_path / "sub").mkdir()
    (tmp_path / "b.txt").write_text("b")
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / "sub" / "c.txt").write_text("c")
    assert list_documents(tmp_path) == [tmp_path / "a.txt", tmp_path / "b.txt", tmp_path / "sub" / "c.txt"]


def test_list_from_listing_file(tmp_path: Path) -> None:
    listing = tmp_path / "docs.lst"
    absolute = tmp_path / "abs.txt"
    listing.write_text(f"# comment\nrel/one.txt\n\n{absolute}\n")
    assert list_documents(listing) == [tmp_path / "rel" / "one.txt", absolute]


def test_list_missing_source(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        list_documents(tmp_path / "nope")


def test_read_html_strips_markup(tmp_path: Path) -> None:
    page = tmp_path / "page.html"
    page.write_text(
        "<html><head><style>p {color: red}</style><script>var x = 1;</script></head>"
        "<body><p>Hello <b>world</b>.</p><p>Second paragraph.</p></body></html>"
    )
    text = read_document(page)
    assert "Hello" in text and "world" in text and "Second paragraph." in text
    assert "var x" not in text and "color" not in text
    assert "<p>" in read_document(page, plain_text=True)


def test_read_gzip(tmp_path: Path) -> None:
    gz = tmp_path / "doc.txt.gz"
    gz.write_bytes(gzip.compress("compressed text".encode("utf-8")))
    assert read_document(gz) == "compressed text"

    gz_html = tmp_path / "page.html.gz"
    gz_html.write_bytes(gzip.compress(b"<p>inner <i>html</i></p>"))
    assert "<p>" not in read_document(gz_html)


def test_read_non_utf8(tmp_path: Path) -> None:
    doc = tmp_path / "latin.txt"
    doc.write_bytes("café crème brûlée, déjà vu à la carte".encode("latin-1"))
    text = read_document(doc, plain_text=True)
    assert text.startswith("caf")
    assert "carte" in text


def test_assign_ids_shares_ids_across_collections() -> None:
    a = [Path("x"), Path("y")]
    b = [Path("y"), Path("z")]
    ids_a, ids_b, id_to_path = assign_ids(a, b)
    assert ids_a == [0, 1]
    assert ids_b == [1, 2]
    assert id_to_path == {0: Path("x"), 1: Path("y"), 2: Path("z")}


def test_assign_ids_single_collection() -> None:
    ids_a, ids_b, id_to_path = assign_ids([Path("x"), Path("y"), Path("x")])
    assert ids_a == ids_b == [0, 1]
    assert len(id_to_path) == 2


def test_file_stats(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("abc")
    (tmp_path / "b.html").write_text("<p>x</p>")
    stats = get_file_stats([tmp_path / "a.txt", tmp_path / "b.html", tmp_path / "missing.txt"])
    assert stats["total_files"] == 2
    assert stats["missing_files"] == 1
    assert stats["markup_files"] == 1
    assert stats["total_size_bytes"] == 3 + len("<p>x</p>")


def test_file_source_shingles_documents(tmp_path: Path) -> None:
    doc = tmp_path / "doc.txt"
    doc.write_text("one two three four. five six seven.")
    source = FileShingleSource({0: doc}, ngram_size=2, plain_text=True)
    assert source.hashes(0) == hashed_shingles("one two three four. five six seven.", 2)
    assert source.describe(0) == str(doc)


def test_file_source_reports_unreadable_documents(tmp_path: Path) -> None:
    missing = tmp_path / "missing.txt"
    source = FileShingleSource({0: missing})
    with pytest.raises(ExtractionError) as info:
        source.hashes(0)
    assert info.value.path == missing
    assert info.value.doc_id == 0
    with pytest.raises(ExtractionError):
        source.hashes(1)


def test_file_source_reports_corrupt_gzip(tmp_path: Path) -> None:
    bad = tmp_path / "bad.txt.gz"
    bad.write_bytes(b"definitely not gzip")
    with pytest.raises(ExtractionError):
        FileShingleSource({0: bad}).hashes(0)


def test_dict_source() -> None:
    source = DictShingleSource({1: {1, 2}, 2: None})
    assert source.hashes(1) == {1, 2}
    with pytest.raises(ExtractionError):
        source.hashes(2)
    with pytest.raises(ExtractionError):
        source.hashes(3)


def test_identical_files_are_detected(tmp_path: Path) -> None:
    text = "The cat sat on the mat today. It was warm and quiet."
    paths = {}
    for i in range(2):
        paths[i] = tmp_path / f"doc{i}.txt"
        paths[i].write_text(text)
    detector = MinHashDetection(FileShingleSource(paths, ngram_size=2, plain_text=True))
    assert list(detector.detect([0, 1], [0, 1], num_perm=32, seed=3)) == [(0, 1, 1.0)]
    assert detector.failures == {}
