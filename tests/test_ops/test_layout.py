"""Tests for ops/layout.py -- Audiobookshelf folder and file naming."""

from pathlib import Path

import pytest

from audiobook_export.models import AssetFile, BookRecord
from audiobook_export.ops.layout import (
    assign_destinations,
    build_destination,
    destination_files,
    folder_names,
)
from audiobook_export.ops.locate import LocatedBook


def _asset(name, position=0, present=True):
    return AssetFile(path=Path("/src/sha1-x") / name, name=name, position=position, present=present)


def _located(identifier, author="Author", title="Title", narrator=None, names=("a.mp3",)):
    record = BookRecord(identifier=identifier, author=author, title=title, narrator=narrator)
    assets = tuple(_asset(n, i) for i, n in enumerate(names))
    return LocatedBook(record=record, storage_dir=Path("/src") / identifier, assets=assets)


class TestFolderNames:
    def test_without_narrator(self):
        assert folder_names("John Doe", "The Great Book", None) == (
            "John Doe",
            "The Great Book",
        )

    def test_with_narrator(self):
        assert folder_names("Jane Smith", "Another Book", "Bob Reader") == (
            "Jane Smith",
            "Another Book {Bob Reader}",
        )

    def test_special_chars(self):
        assert folder_names("Author/Writer", "Book: A Subtitle", "Narrator: The Voice") == (
            "Author_Writer",
            "Book_ A Subtitle {Narrator_ The Voice}",
        )

    @pytest.mark.parametrize("narrator", [None, "", "   ", "..."])
    def test_no_empty_brackets(self, narrator):
        _, book_dir = folder_names("A", "Title", narrator)
        assert book_dir == "Title"

    @pytest.mark.parametrize("author", [None, "", "   "])
    def test_unknown_author(self, author):
        author_dir, _ = folder_names(author, "Title", None)
        assert author_dir == "Unknown Author"

    def test_custom_unknown_author(self):
        assert folder_names("", "T", None, unknown_author="Anonymous")[0] == "Anonymous"

    @pytest.mark.parametrize(
        "author,title,narrator",
        [
            ("a/b", "c\\d", "e:f"),
            ("..", "..", ".."),
            ("/", "/", "/"),
            ("", "", ""),
            ("C:\\Users", "What?*", "<|>"),
            ("x" * 400, "y" * 400, "z" * 400),
            ("\x00\x01", "\n", "\t"),
        ],
    )
    def test_naming_safety(self, author, title, narrator):
        for name in folder_names(author, title, narrator):
            assert name
            assert name not in (".", "..")
            assert "/" not in name
            assert "\\" not in name
            assert "\x00" not in name
            assert len(name.encode("utf-8")) <= 255


class TestDestinationFiles:
    def test_single_m4b_renamed_to_title(self):
        asset = _asset("f8d1c2.m4b")
        assert destination_files("My Book", (asset,)) == (("My Book.m4b", asset),)

    def test_extension_lowercased(self):
        asset = _asset("BOOK.M4B")
        assert destination_files("My Book", (asset,))[0][0] == "My Book.m4b"

    def test_title_sanitized_in_file_name(self):
        asset = _asset("x.m4b")
        assert destination_files("Book: Sub/Part", (asset,))[0][0] == "Book_ Sub_Part.m4b"

    def test_single_mp3_keeps_name(self):
        asset = _asset("01 Track.mp3")
        assert destination_files("My Book", (asset,)) == (("01 Track.mp3", asset),)

    def test_multi_file_keeps_names_in_order(self):
        assets = (_asset("01.m4b", 0), _asset("02.m4b", 1), _asset("03.m4b", 2))
        names = [name for name, _ in destination_files("My Book", assets)]
        assert names == ["01.m4b", "02.m4b", "03.m4b"]


class TestBuildDestination:
    def test_spec_fields(self):
        spec = build_destination(_located("sha1-a", narrator="Reader", names=("book.m4b",)))
        assert spec.author_dir == "Author"
        assert spec.book_dir == "Title {Reader}"
        assert spec.relative_dir == Path("Author") / "Title {Reader}"
        assert [name for name, _ in spec.files] == ["Title.m4b"]


class TestAssignDestinations:
    def test_distinct_books_unchanged(self):
        pairs = assign_destinations([_located("sha1-a", title="One"), _located("sha1-b", title="Two")])
        assert [spec.book_dir for _, spec in pairs] == ["One", "Two"]

    def test_collision_gets_identifier_suffix(self):
        pairs = assign_destinations([_located("sha1-b"), _located("sha1-a")])
        assert [(b.record.identifier, s.book_dir) for b, s in pairs] == [
            ("sha1-a", "Title"),
            ("sha1-b", "Title (sha1-b)"),
        ]

    def test_collision_is_case_insensitive(self):
        pairs = assign_destinations(
            [_located("sha1-a", author="author", title="BOOK"), _located("sha1-b", title="Book")]
        )
        dirs = {(s.author_dir.casefold(), s.book_dir.casefold()) for _, s in pairs}
        assert len(dirs) == 2

    def test_collision_after_sanitization(self):
        pairs = assign_destinations(
            [_located("sha1-a", title="What?"), _located("sha1-b", title="What*")]
        )
        # "What*" sorts before "What?"
        assert [(b.record.identifier, s.book_dir) for b, s in pairs] == [
            ("sha1-b", "What_"),
            ("sha1-a", "What_ (sha1-a)"),
        ]

    def test_same_identifier_twice_shares_folder(self):
        pairs = assign_destinations([_located("sha1-a"), _located("sha1-a")])
        assert [s.book_dir for _, s in pairs] == ["Title", "Title"]

    def test_sorted_by_author_then_title(self):
        pairs = assign_destinations(
            [
                _located("1", author="Zed", title="A"),
                _located("2", author="amy", title="Z"),
                _located("3", author="Amy", title="B"),
            ]
        )
        assert [b.record.identifier for b, _ in pairs] == ["3", "2", "1"]

    def test_deterministic(self):
        books = [_located("sha1-b"), _located("sha1-a"), _located("sha1-c", title="Other")]
        assert assign_destinations(books) == assign_destinations(list(reversed(books)))
