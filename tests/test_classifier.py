"""Test line classification"""
import json

import pytest

from services.ingestion.classifier import Decoded, Envelope, Raw, classify, decode_line


class TestDecodeLine:
    """Test decoding of a single line"""

    def test_object_is_decoded(self):
        payload = decode_line('{"type": "user"}')
        assert payload == Decoded({"type": "user"})

    def test_malformed_json_is_raw(self):
        assert decode_line("not json") == Raw("not json")
        assert decode_line('{"type": "user"') == Raw('{"type": "user"')

    @pytest.mark.parametrize("line", ["null", "NaN", '{"value": Infinity}', "-Infinity"])
    def test_unstorable_values_are_raw(self, line):
        assert isinstance(decode_line(line), Raw)

    def test_deeply_nested_json_is_raw(self):
        line = "[" * 100000 + "]" * 100000
        assert isinstance(decode_line(line), Raw)

    def test_scalar_and_array_values_are_decoded(self):
        assert decode_line("42") == Decoded(42)
        assert decode_line('["a", 1]') == Decoded(["a", 1])


class TestEnvelope:
    """Test extraction of the well-known envelope fields"""

    def test_non_object_has_empty_envelope(self):
        assert Envelope.from_value(["user"]) == Envelope()
        assert Envelope.from_value("user").message_type is None

    def test_type_wins_over_role(self):
        envelope = Envelope.from_value({"type": "summary", "role": "assistant"})
        assert envelope.message_type == "summary"

    def test_role_used_when_type_absent(self):
        assert Envelope.from_value({"role": "assistant"}).message_type == "assistant"

    def test_scalar_fields_kept_as_written(self):
        envelope = Envelope.from_value({"type": 5, "timestamp": True})
        assert envelope.message_type == "5"
        assert envelope.timestamp == "true"
        assert Envelope.from_value({"role": 2.5}).message_type == "2.5"

    def test_object_and_array_fields_are_ignored(self):
        envelope = Envelope.from_value({"type": {"kind": "user"}, "role": ["user"], "timestamp": None})
        assert envelope.message_type is None
        assert envelope.timestamp is None

    def test_empty_type_falls_back_to_role(self):
        assert Envelope.from_value({"type": "", "role": "user"}).message_type == "user"

    def test_numeric_timestamp_kept_as_text(self):
        assert Envelope.from_value({"timestamp": 1704067200}).timestamp == "1704067200"


class TestClassify:
    """Test classification into parsed records"""

    def test_decoded_record_copies_envelope(self):
        line = json.dumps({
            "type": "assistant",
            "timestamp": "2024-01-01T00:00:00Z",
            "metadata": {"model": "x"},
            "message": {"content": "hi"},
        })
        record = classify(line, 3)

        assert record.is_decoded
        assert record.line_number == 3
        assert record.raw_text == line
        assert record.content["message"] == {"content": "hi"}
        assert record.message_type == "assistant"
        assert record.message_timestamp == "2024-01-01T00:00:00Z"
        assert record.metadata == {"model": "x"}

    def test_object_without_envelope_fields(self):
        record = classify('{"foo": 1}', 1)
        assert record.is_decoded
        assert record.message_type is None
        assert record.message_timestamp is None
        assert record.metadata is None

    def test_raw_record_keeps_text_only(self):
        record = classify("not json", 2)

        assert not record.is_decoded
        assert record.content is None
        assert record.raw_text == "not json"
        assert record.message_type is None

    def test_to_row(self):
        row = classify('{"role": "user"}', 5).to_row("file-1")
        assert row == {
            "file_id": "file-1",
            "line_number": 5,
            "content": {"role": "user"},
            "raw_text": '{"role": "user"}',
            "message_type": "user",
            "message_timestamp": None,
            "metadata": None,
        }

    def test_to_row_escapes_nul_in_text_columns(self):
        raw = classify("\x00garbage", 1)
        assert not raw.is_decoded
        assert raw.to_row("file-1")["raw_text"] == "\\u0000garbage"

        decoded = classify('{"type": "a\\u0000b", "timestamp": "t\\u0000"}', 2)
        row = decoded.to_row("file-1")
        assert row["message_type"] == "a\\u0000b"
        assert row["message_timestamp"] == "t\\u0000"
        assert row["content"] == {"type": "a\x00b", "timestamp": "t\x00"}
