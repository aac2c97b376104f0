"""
Unit tests for the author import pipeline.
"""

import json
import sys

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from author_import.batch.pipeline import AuthorImportPipeline, PipelineState, import_authors
from author_import.core.config import ImporterConfig
from author_import.core.errors import SourceFileNotFoundError
from author_import.utils.validation import ValidationError


def make_config(batch_size=50, **kwargs) -> ImporterConfig:
    return ImporterConfig(batch_size=batch_size, collect_garbage=False, **kwargs)


EDITION_LINE = "/type/edition\t/books/OL1M\t1\t2008-04-01\t{}"
SHORT_LINE = "/type/author\t/authors/OL3A\t1"
HUGE_INT_PAYLOAD = '{"name": "X", "revision": ' + "9" * 5000 + "}"
INT_DIGIT_LIMIT = getattr(sys, "get_int_max_str_digits", lambda: 0)()


@pytest.mark.unit
class TestAuthorImportPipeline:
    """Tests for AuthorImportPipeline"""

    def test_single_author(self, write_dump, make_author_line, recording_sink):
        path = write_dump([make_author_line("OL1A", {
            "name": "Ada",
            "key": "/authors/OL1A",
            "photos": [123],
            "bio": {"type": "/type/text", "value": "x"},
        })])
        pipeline = AuthorImportPipeline(recording_sink, make_config(batch_size=1))

        stats = pipeline.run(path)

        assert stats.lines_seen == 1
        assert stats.records_imported == 1
        assert stats.records_errored == 0
        assert stats.batches_flushed == 1
        assert pipeline.state == PipelineState.DONE

        ada = recording_sink.stored["OL1A"]
        assert ada.name == "Ada"
        assert ada.link == "https://openlibrary.org/authors/OL1A"
        assert ada.image_url == "https://covers.openlibrary.org/a/id/123-L.jpg"
        assert ada.about == "x"

    def test_minimal_author_with_alternate_name(self, write_dump, make_author_line, recording_sink):
        path = write_dump([make_author_line("OL1A", {"name": "Ada", "alternate_names": ["A. L."]})])

        stats = AuthorImportPipeline(recording_sink, make_config(batch_size=1)).run(path)

        assert recording_sink.batches == [["OL1A"]]
        assert stats.batches_flushed == 1
        assert stats.records_imported == 1

        ada = recording_sink.stored["OL1A"]
        assert ada.name == "Ada"
        assert ada.alternate_names == ["A. L."]
        assert ada.link == "https://openlibrary.org/authors/OL1A"
        assert ada.about == ""
        assert ada.image_url is None
        assert ada.rating_count == 0
        assert ada.average_rating == 0.0

    @pytest.mark.skipif(not INT_DIGIT_LIMIT, reason="interpreter has no integer digit limit")
    def test_oversized_integer_payload_is_an_error(self, write_dump, make_author_line, recording_sink):
        path = write_dump([
            make_author_line("OL1A"),
            make_author_line("OL2A", raw_payload=HUGE_INT_PAYLOAD),
            make_author_line("OL3A"),
        ])
        pipeline = AuthorImportPipeline(recording_sink, make_config(batch_size=10))

        stats = pipeline.run(path)

        assert stats.records_errored == 1
        assert stats.records_imported == 2
        assert recording_sink.batches == [["OL1A", "OL3A"]]
        assert pipeline.state == PipelineState.DONE

    def test_non_author_line_is_skipped(self, write_dump, make_author_line, recording_sink):
        path = write_dump([EDITION_LINE, make_author_line("OL1A")])

        stats = AuthorImportPipeline(recording_sink, make_config()).run(path)

        assert stats.lines_seen == 2
        assert stats.non_author_skipped == 1
        assert stats.records_imported == 1
        assert stats.records_errored == 0

    def test_short_line_is_malformed(self, write_dump, make_author_line, recording_sink):
        path = write_dump([SHORT_LINE, make_author_line("OL1A")])

        stats = AuthorImportPipeline(recording_sink, make_config()).run(path)

        assert stats.malformed == 1
        assert stats.records_imported == 1
        assert stats.is_balanced()

    def test_bad_json_does_not_affect_batch(self, write_dump, make_author_line, recording_sink):
        path = write_dump([
            make_author_line("OL1A"),
            make_author_line("OL2A", raw_payload="{broken"),
            make_author_line("OL3A"),
        ])

        stats = AuthorImportPipeline(recording_sink, make_config(batch_size=10)).run(path)

        assert stats.records_errored == 1
        assert stats.records_imported == 2
        assert recording_sink.batches == [["OL1A", "OL3A"]]

    def test_flush_sizes(self, write_dump, make_author_line, recording_sink):
        path = write_dump([make_author_line(f"OL{i}A") for i in range(2500)])

        stats = AuthorImportPipeline(recording_sink, make_config(batch_size=1000)).run(path)

        assert [len(b) for b in recording_sink.batches] == [1000, 1000, 500]
        assert stats.records_imported == 2500
        assert stats.batches_flushed == 3

    def test_failed_batch_counts_members_as_errors(self, write_dump, make_author_line, recording_sink):
        path = write_dump([make_author_line(f"OL{i}A") for i in range(5)])
        recording_sink.fail_calls = {1}

        pipeline = AuthorImportPipeline(recording_sink, make_config(batch_size=2))
        stats = pipeline.run(path)

        assert stats.batches_flushed == 3
        assert stats.batches_failed == 1
        assert stats.records_errored == 2
        assert stats.records_imported == 3
        assert set(recording_sink.stored) == {"OL2A", "OL3A", "OL4A"}
        assert stats.is_balanced()
        assert pipeline.state == PipelineState.DONE

    def test_per_record_retry_salvages_good_authors(self, write_dump, make_author_line, recording_sink):
        path = write_dump([make_author_line(f"OL{i}A") for i in range(3)])
        recording_sink.fail_olids = {"OL1A"}
        config = make_config(batch_size=3, retry_failed_batch_per_record=True)

        stats = AuthorImportPipeline(recording_sink, config).run(path)

        assert stats.batches_failed == 1
        assert stats.records_imported == 2
        assert stats.records_errored == 1
        assert stats.is_balanced()

    def test_second_run_is_all_duplicates(self, write_dump, make_author_line, recording_sink):
        path = write_dump([make_author_line(f"OL{i}A") for i in range(7)])
        config = make_config(batch_size=3)

        first = AuthorImportPipeline(recording_sink, config).run(path)
        second = AuthorImportPipeline(recording_sink, config).run(path)

        assert first.records_imported == 7
        assert second.records_imported == 0
        assert second.duplicates_skipped == 7
        assert len(recording_sink.stored) == 7
        assert second.is_balanced()

    def test_blank_lines_are_not_records(self, write_dump, make_author_line, recording_sink):
        path = write_dump(["", make_author_line("OL1A"), "   ", ""])

        stats = AuthorImportPipeline(recording_sink, make_config()).run(path)

        assert stats.blank_lines == 3
        assert stats.lines_seen == 1
        assert stats.is_balanced()

    def test_crlf_dump(self, write_dump, make_author_line, recording_sink):
        path = write_dump([make_author_line("OL1A"), make_author_line("OL2A")], newline="\r\n")

        stats = AuthorImportPipeline(recording_sink, make_config()).run(path)

        assert stats.records_imported == 2
        assert stats.records_errored == 0

    def test_missing_file(self, tmp_path, recording_sink):
        pipeline = AuthorImportPipeline(recording_sink, make_config())

        with pytest.raises(SourceFileNotFoundError):
            pipeline.run(tmp_path / "missing.txt")

        assert pipeline.state == PipelineState.FAILED
        assert recording_sink.batches == []

    def test_empty_file(self, write_dump, recording_sink):
        path = write_dump([], name="empty.txt", newline="")

        stats = AuthorImportPipeline(recording_sink, make_config()).run(path)

        assert stats.lines_seen == 0
        assert stats.batches_flushed == 0
        assert recording_sink.batches == []

    def test_duplicate_olid_within_one_file(self, write_dump, make_author_line, recording_sink):
        path = write_dump([make_author_line("OL1A"), make_author_line("OL1A")])

        stats = AuthorImportPipeline(recording_sink, make_config()).run(path)

        assert stats.records_imported == 1
        assert stats.duplicates_skipped == 1

    def test_import_authors_batch_size_override(self, write_dump, make_author_line, recording_sink):
        path = write_dump([make_author_line(f"OL{i}A") for i in range(5)])

        stats = import_authors(path, recording_sink, batch_size=2, config=make_config())

        assert [len(b) for b in recording_sink.batches] == [2, 2, 1]
        assert stats.records_imported == 5

    def test_import_authors_rejects_bad_batch_size(self, write_dump, make_author_line, recording_sink):
        path = write_dump([make_author_line("OL1A")])
        with pytest.raises(ValidationError):
            import_authors(path, recording_sink, batch_size=0)


LINE_KINDS = st.sampled_from(["author", "duplicate", "edition", "short", "bad_json", "huge_int", "not_object", "blank"])


@pytest.mark.unit
@settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(
    kinds=st.lists(LINE_KINDS, max_size=60),
    batch_size=st.integers(min_value=1, max_value=7),
    fail_calls=st.sets(st.integers(min_value=1, max_value=10), max_size=3),
)
def test_every_line_has_one_outcome(tmp_path, make_author_line, sink_factory, kinds, batch_size, fail_calls):
    lines = []
    for i, kind in enumerate(kinds):
        if kind == "author":
            lines.append(make_author_line(f"OL{i}A"))
        elif kind == "duplicate":
            lines.append(make_author_line("OL0DUP"))
        elif kind == "edition":
            lines.append(EDITION_LINE)
        elif kind == "short":
            lines.append(SHORT_LINE)
        elif kind == "bad_json":
            lines.append(make_author_line(f"OL{i}A", raw_payload="{nope"))
        elif kind == "huge_int":
            lines.append(make_author_line(f"OL{i}A", raw_payload=HUGE_INT_PAYLOAD))
        elif kind == "not_object":
            lines.append(make_author_line(f"OL{i}A", raw_payload=json.dumps(["a"])))
        else:
            lines.append("")

    path = tmp_path / "dump.txt"
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")

    sink = sink_factory()
    sink.fail_calls = set(fail_calls)
    stats = AuthorImportPipeline(sink, make_config(batch_size=batch_size)).run(path)

    assert stats.lines_seen + stats.blank_lines == len(lines)
    assert stats.is_balanced()
    assert stats.records_imported == len(sink.stored)
    assert all(len(batch) <= batch_size for batch in sink.batches)
