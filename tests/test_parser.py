"""Tests for VTT splitting, chunking and file helpers."""

import pytest
from pathlib import Path
import tempfile

from vtt_translator.errors import InvalidArgument
from vtt_translator.models import VttDocument
from vtt_translator.parser import (
    split_vtt_into_cues,
    group_cues_into_chunks,
    build_chunks,
    validate_vtt_file,
    output_path_for,
    save_vtt,
    read_vtt,
)

from conftest import SAMPLE_VTT


class TestSplitVttIntoCues:

    def test_split_simple(self):
        doc = split_vtt_into_cues(SAMPLE_VTT)
        assert doc.header == "WEBVTT"
        assert len(doc.cues) == 3
        assert doc.cues[0] == "1\n00:00:01.000 --> 00:00:03.500\nHello world"
        assert doc.cues[2].startswith("3\n00:00:07.000")

    def test_identifier_belongs_to_cue(self):
        content = "WEBVTT\nKind: captions\n\nintro\n00:00:01.000 --> 00:00:02.000\nHi\n"
        doc = split_vtt_into_cues(content)
        assert doc.header == "WEBVTT\nKind: captions"
        assert doc.cues == ["intro\n00:00:01.000 --> 00:00:02.000\nHi\n"]

    def test_no_marker_is_all_header(self):
        doc = split_vtt_into_cues("  WEBVTT\n\nNOTE nothing here  \n")
        assert doc.header == "WEBVTT\n\nNOTE nothing here"
        assert doc.cues == []

    def test_empty(self):
        assert split_vtt_into_cues("") == VttDocument(header="", cues=[])

    def test_windows_line_endings(self):
        content = "WEBVTT\r\n\r\n00:00:01.000 --> 00:00:02.000\r\nA\r\n\r\n00:00:03.000 --> 00:00:04.000\r\nB\r\n"
        doc = split_vtt_into_cues(content)
        assert doc.header == "WEBVTT"
        assert len(doc.cues) == 2
        assert "\r" not in "".join(doc.cues)

    def test_extra_blank_lines_between_cues(self):
        content = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nA\n\n\n\n00:00:03.000 --> 00:00:04.000\nB"
        doc = split_vtt_into_cues(content)
        assert [c.splitlines()[-1] for c in doc.cues] == ["A", "B"]

    def test_no_header(self):
        doc = split_vtt_into_cues("00:00:01.000 --> 00:00:02.000\nA\n\n00:00:03.000 --> 00:00:04.000\nB")
        assert doc.header == ""
        assert len(doc.cues) == 2

    def test_recombine_is_idempotent(self):
        doc = split_vtt_into_cues(SAMPLE_VTT)
        again = split_vtt_into_cues(doc.to_text())
        assert again.header == doc.header
        assert again.cues == doc.cues

    def test_order_preserved(self):
        cues = [f"{i}\n00:00:{i:02d}.000 --> 00:00:{i:02d}.500\nLine {i}" for i in range(1, 21)]
        doc = split_vtt_into_cues("WEBVTT\n\n" + "\n\n".join(cues))
        assert doc.cues == cues


class TestGroupCuesIntoChunks:

    def test_group(self):
        chunks = group_cues_into_chunks(["a", "b", "c"], 2)
        assert chunks == ["a\n\nb", "c"]

    @pytest.mark.parametrize("count,size", [(1, 1), (7, 3), (70, 70), (71, 70), (10, 100)])
    def test_conservation(self, count, size):
        cues = [f"00:00:00.000 --> 00:00:01.000\ncue {i}" for i in range(count)]
        chunks = group_cues_into_chunks(cues, size)
        assert len(chunks) == -(-count // size)
        assert sum(c.count("-->") for c in chunks) == count
        assert "\n\n".join(chunks) == "\n\n".join(cues)

    def test_empty_cues(self):
        assert group_cues_into_chunks([], 5) == []

    @pytest.mark.parametrize("size", [0, -1])
    def test_non_positive_size(self, size):
        with pytest.raises(InvalidArgument):
            group_cues_into_chunks(["a"], size)

    def test_invalid_argument_is_value_error(self):
        with pytest.raises(ValueError):
            group_cues_into_chunks(["a"], 0)


class TestBuildChunks:

    def test_header_on_first_chunk_only(self):
        doc = split_vtt_into_cues(SAMPLE_VTT)
        chunks = build_chunks(doc, 2)

        assert len(chunks) == 2
        assert chunks[0].text.startswith("WEBVTT\n\n1\n")
        assert chunks[0].cue_count == 2
        assert chunks[1].text.startswith("3\n")
        assert chunks[1].cue_count == 1
        assert [c.label for c in chunks] == ["1/2", "2/2"]

    def test_without_header(self):
        doc = VttDocument(header="", cues=["00:00:01.000 --> 00:00:02.000\nA"])
        chunks = build_chunks(doc, 10)
        assert chunks[0].text == "00:00:01.000 --> 00:00:02.000\nA"


class TestValidateVttFile:

    def test_nonexistent(self):
        error = validate_vtt_file(Path("/nonexistent/file.vtt"))
        assert "not found" in error

    def test_wrong_extension(self):
        with tempfile.NamedTemporaryFile(suffix=".srt") as f:
            error = validate_vtt_file(Path(f.name))
            assert "Invalid file extension" in error

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.vtt"
        path.write_text("")
        assert validate_vtt_file(path) == "File is empty"

    def test_valid_file(self, tmp_path):
        path = tmp_path / "talk.vtt"
        path.write_text(SAMPLE_VTT, encoding="utf-8")
        assert validate_vtt_file(path) is None


class TestFiles:

    def test_output_path(self):
        assert output_path_for(Path("/a/talk.vtt")) == Path("/a/talk_vi.vtt")
        assert output_path_for(Path("/a/talk.vtt"), "_fr", Path("/out")) == Path("/out/talk_fr.vtt")

    def test_read_strips_bom(self, tmp_path):
        path = tmp_path / "bom.vtt"
        path.write_bytes("\ufeffWEBVTT\n".encode("utf-8"))
        assert read_vtt(path) == "WEBVTT\n"

    def test_save(self, tmp_path):
        path = tmp_path / "nested" / "out.vtt"
        save_vtt("\n\nWEBVTT\n\n00:00:01.000 --> 00:00:02.000\nA\n\n", path)
        assert path.read_text(encoding="utf-8") == "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nA\n"
