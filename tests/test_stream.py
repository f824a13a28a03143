"""Tests for SSE framing and payload classification."""

import pytest

from mcp_http_transport import RawPayload, StructuredMessage
from mcp_http_transport.stream import SSEDecoder, classify_payload, is_message_shaped

STREAM = (
    'data: {"jsonrpc":"2.0","id":1,"result":{"text":"grüße ☃ 🚀"}}\n\n'
    "event: ping\n\n"
    "data: plain text\n\n"
    'id: 9\ndata: {"method":"notifications/message"}\n\n'
)

EXPECTED_PAYLOADS = [
    '{"jsonrpc":"2.0","id":1,"result":{"text":"grüße ☃ 🚀"}}',
    "plain text",
    '{"method":"notifications/message"}',
]


def decode_chunks(chunks: list[str]) -> list[str]:
    decoder = SSEDecoder()
    payloads: list[str] = []
    for chunk in chunks:
        payloads.extend(decoder.feed(chunk))
    return payloads


class TestSSEDecoder:
    def test_whole_stream(self):
        assert decode_chunks([STREAM]) == EXPECTED_PAYLOADS

    def test_every_two_way_split(self):
        for i in range(len(STREAM) + 1):
            assert decode_chunks([STREAM[:i], STREAM[i:]]) == EXPECTED_PAYLOADS, i

    def test_char_by_char(self):
        assert decode_chunks(list(STREAM)) == EXPECTED_PAYLOADS

    def test_split_inside_prefix_and_delimiter(self):
        decoder = SSEDecoder()
        assert decoder.feed("da") == []
        assert decoder.feed("ta: x\n") == []
        assert decoder.has_buffered_data()
        assert decoder.feed("\n") == ["x"]
        assert not decoder.has_buffered_data()

    def test_prefix_requires_space(self):
        assert decode_chunks(["data:no-space\n\n"]) == []

    def test_first_data_line_wins(self):
        assert decode_chunks(["data: one\ndata: two\n\n"]) == ["one"]

    def test_blank_frames_dropped(self):
        assert decode_chunks(["\n\n\n\n  \n\ndata: x\n\n"]) == ["x"]

    def test_payload_kept_verbatim(self):
        assert decode_chunks(["data:  padded \n\n"]) == [" padded "]

    def test_empty_payload(self):
        assert decode_chunks(["data: \n\n"]) == [""]

    def test_indented_data_line_ignored(self):
        assert decode_chunks(["  data: indented\n\n"]) == []

    def test_frame_spacing_not_trimmed(self):
        assert decode_chunks(["data: \n\ndata: x \n\n  data: indented\n\n"]) == ["", "x "]

    def test_replacement_characters_pass_through(self):
        assert decode_chunks(["data: a�b\n\n"]) == ["a�b"]

    def test_incomplete_tail_stays_buffered(self):
        decoder = SSEDecoder()
        assert decoder.feed("data: a\n\ndata: b") == ["a"]
        assert decoder.has_buffered_data()


class TestClassifyPayload:
    @pytest.mark.parametrize(
        "data",
        [
            '{"jsonrpc": "2.0"}',
            '{"id": null}',
            '{"id": "abc"}',
            '{"method": "ping"}',
            '{"result": null}',
            '{"error": {"code": -32601, "message": "Method not found"}}',
        ],
    )
    def test_message_shapes(self, data: str):
        event = classify_payload(data)

        assert isinstance(event, StructuredMessage)
        assert event.kind == "message"

    def test_structured_message_keeps_parsed_value(self):
        event = classify_payload('{"jsonrpc":"2.0","id":1,"result":true}')

        assert event == StructuredMessage(message={"jsonrpc": "2.0", "id": 1, "result": True})

    @pytest.mark.parametrize(
        "data",
        ['{"jsonrpc": "1.0"}', '{"params": {}}', "[1, 2]", "42", '"text"', "null", "true"],
    )
    def test_json_without_message_shape(self, data: str):
        assert classify_payload(data) == RawPayload(data=data)

    def test_invalid_json(self):
        event = classify_payload("not-json")

        assert isinstance(event, RawPayload)
        assert event.kind == "raw"
        assert event.data == "not-json"


class TestIsMessageShaped:
    def test_non_dict_values(self):
        assert not is_message_shaped(None)
        assert not is_message_shaped([{"id": 1}])
        assert not is_message_shaped("jsonrpc")

    def test_dict_values(self):
        assert is_message_shaped({"jsonrpc": "2.0"})
        assert is_message_shaped({"error": None})
        assert not is_message_shaped({})
