"""Tests for path based metadata inference."""

import pytest
from mutagen.id3 import TALB, TCON, TDRC, TIT2, TPE1, TPOS, TRCK

from scrubtag.core import TagDocument
from scrubtag.guess import MetaCandidate, extract_index, infer, parse_enum, read_meta


class TestInfer:
    """Guessing tags from file paths."""

    def test_artist_title_album(self):
        meta = infer("/Music/Dark Side of the Moon/Pink Floyd - Money.mp3")
        assert meta == MetaCandidate(
            album="Dark Side of the Moon",
            artist="Pink Floyd",
            title="Money",
        )

    def test_track_and_count(self):
        meta = infer("/Music/Album/Artist - 03:12 Title.mp3")
        assert (meta.track, meta.track_count, meta.title) == (3, 12, "Title")
        assert meta.artist == "Artist"

    def test_multi_digit_track(self):
        meta = infer("/Music/Album/Artist - 12. Title.mp3")
        assert (meta.track, meta.title) == (12, "Title")

    def test_disc_from_parent(self):
        meta = infer("/Music/2:3 The Album/Artist - Title.mp3")
        assert (meta.disc, meta.disc_count, meta.album) == (2, 3, "The Album")

    def test_title_only(self):
        meta = infer("/Music/Album/Just A Title.mp3")
        assert meta.artist == ""
        assert meta.title == "Just A Title"

    def test_hyphenated_title_is_rejoined(self):
        meta = infer("/x/Artist - Part-One - Two.mp3")
        assert meta.artist == "Artist"
        assert meta.title == "Part-One - Two"

    def test_leading_track_without_artist_becomes_artist(self):
        """The hyphen split happens before index detection."""
        meta = infer("/Music/Album/01 - Title.mp3")
        assert meta.artist == "01"
        assert meta.title == "Title"
        assert meta.track == 0

    @pytest.mark.parametrize("parent", ["MP3ADD", "my Downloads", "tmp.xyz"])
    def test_denylisted_parent_is_not_an_album(self, parent):
        meta = infer(f"/data/{parent}/Artist - Title.mp3")
        assert meta.album == ""
        assert meta.disc == 0

    def test_custom_denylist(self):
        meta = infer("/data/incoming/Artist - Title.mp3", denylist=("incoming",))
        assert meta.album == ""
        meta = infer("/data/MP3ADD/Artist - Title.mp3", denylist=("incoming",))
        assert meta.album == "MP3ADD"

    def test_no_parent(self):
        meta = infer("Artist - Title.mp3")
        assert meta.album == ""
        assert meta.title == "Title"

    def test_name_without_extension(self):
        meta = infer("/Music/Album/Artist - Title")
        assert meta.title == "Title"

    def test_only_last_extension_is_stripped(self):
        meta = infer("/Music/Album/Artist - Title.live.mp3")
        assert meta.title == "Title.live"


class TestExtractIndex:

    @pytest.mark.parametrize("text, expected", [
        ("03 - Money", (3, 0, "Money")),
        ("1:2 Disc Title", (1, 2, "Disc Title")),
        ("Money", (0, 0, "Money")),
        ("07.Time", (7, 0, "Time")),
        ("  Padded ; ", (0, 0, "Padded")),
        ("", (0, 0, "")),
    ])
    def test_extract(self, text, expected):
        assert extract_index(text) == expected


class TestParseEnum:

    @pytest.mark.parametrize("value, expected", [
        ("3/12", (3, 12)),
        ("3", (3, 0)),
        (" 4 / 9 ", (4, 9)),
        ("", (0, 0)),
        ("x/y", (0, 0)),
        (None, (0, 0)),
    ])
    def test_parse(self, value, expected):
        assert parse_enum(value) == expected


class TestReadMeta:

    def test_reads_present_fields(self, mp3_factory):
        path = mp3_factory(frames=[
            TIT2(encoding=3, text=["Money"]),
            TPE1(encoding=3, text=["Pink Floyd"]),
            TALB(encoding=3, text=["Dark Side of the Moon"]),
            TCON(encoding=3, text=["Rock"]),
            TRCK(encoding=0, text=["6/10"]),
            TPOS(encoding=0, text=["1"]),
            TDRC(encoding=3, text=["1973"]),
        ])
        with TagDocument.managed(path) as doc:
            meta = read_meta(doc)

        assert meta == MetaCandidate(
            album="Dark Side of the Moon", artist="Pink Floyd", title="Money",
            genre="Rock", year=1973, track=6, track_count=10, disc=1, disc_count=0,
        )

    def test_empty_document(self, mp3_factory):
        with TagDocument.managed(mp3_factory()) as doc:
            assert read_meta(doc) == MetaCandidate()
