import pytest

from sqlbrowser.errors import InvalidArgument, ProtocolError
from sqlbrowser.messages import (
    BroadcastDiscover,
    DacQuery,
    InstanceQuery,
    UnicastDiscover,
    decode_dac_response,
    decode_general_response,
    encode_broadcast_discover,
    encode_dac_query,
    encode_general_response,
    encode_instance_query,
    encode_unicast_discover,
    parse_request,
)


def test_discover_requests_are_single_bytes():
    assert encode_broadcast_discover() == b"\x02"
    assert encode_unicast_discover() == b"\x03"


def test_instance_query_layout():
    assert encode_instance_query("SQLEXPRESS") == b"\x04SQLEXPRESS\x00"


def test_dac_query_layout():
    assert encode_dac_query("MSSQLSERVER") == b"\x0f\x01MSSQLSERVER\x00"


@pytest.mark.parametrize("name", ["", "   ", "A" * 33])
@pytest.mark.parametrize("encoder", [encode_instance_query, encode_dac_query])
def test_invalid_instance_names_are_rejected(encoder, name):
    with pytest.raises(InvalidArgument):
        encoder(name)


def test_instance_name_limit_applies_to_encoded_bytes():
    name = "é" * 17  # 17 characters, 34 UTF-8 bytes
    with pytest.raises(InvalidArgument):
        encode_instance_query(name)
    assert encode_instance_query(name, encoding="latin-1") == b"\x04" + b"\xe9" * 17 + b"\x00"


def test_instance_name_of_32_characters_is_accepted():
    assert len(encode_instance_query("B" * 32)) == 34


def test_unencodable_instance_name_is_rejected():
    with pytest.raises(InvalidArgument):
        encode_instance_query("中文", encoding="ascii")


@pytest.mark.parametrize("request_", [
    BroadcastDiscover(),
    UnicastDiscover(),
    InstanceQuery("SQLEXPRESS"),
    DacQuery("Named_Instance-01"),
    InstanceQuery("B" * 32),
])
def test_parse_request_recovers_packed_request(request_):
    assert parse_request(request_.pack()) == request_


@pytest.mark.parametrize("data", [b"", b"\x04", b"\x04SQL", b"\x04\x00", b"\x0f\x02SQL\x00", b"\x09", b"\x02\x00"])
def test_parse_request_rejects_malformed_datagrams(data):
    with pytest.raises(ProtocolError):
        parse_request(data)


def test_decode_general_response():
    assert decode_general_response(bytes([0x05, 0x04, 0x00]) + b"TEST") == "TEST"


def test_decode_general_response_ignores_bytes_past_declared_length():
    assert decode_general_response(b"\x05\x02\x00ABCD") == "AB"


def test_decode_general_response_reads_little_endian_length():
    payload = b"x" * 300
    assert decode_general_response(b"\x05\x2c\x01" + payload) == "x" * 300


@pytest.mark.parametrize("first", [0x00, 0x04, 0x06, 0xFF])
def test_decode_general_response_rejects_other_message_types(first):
    with pytest.raises(ProtocolError):
        decode_general_response(bytes([first, 0x04, 0x00]) + b"TEST")


@pytest.mark.parametrize("data", [b"", b"\x05", b"\x05\x04", b"\x05\x05\x00TEST"])
def test_decode_general_response_rejects_short_buffers(data):
    with pytest.raises(ProtocolError):
        decode_general_response(data)


def test_decode_general_response_rejects_undecodable_text():
    with pytest.raises(ProtocolError):
        decode_general_response(b"\x05\x02\x00\xff\xfe")
    assert decode_general_response(b"\x05\x02\x00\xff\xfe", encoding="latin-1") == "\xff\xfe"


def test_decode_dac_response_uses_bytes_three_and_four():
    low, high = 0x9A, 0x05
    data = bytes([0x05, 0x06, 0x00, 0x01, low, high])
    assert decode_dac_response(data) == (data[4] << 8) + data[3]
    assert decode_dac_response(data) == 0x9A01


@pytest.mark.parametrize("data", [
    b"",
    b"\x05\x06\x00\x01\x9a",
    b"\x05\x06\x00\x01\x9a\x05\x00",
    b"\x04\x06\x00\x01\x9a\x05",
    b"\x05\x07\x00\x01\x9a\x05",
    b"\x05\x06\x01\x01\x9a\x05",
    b"\x05\x06\x00\x02\x9a\x05",
])
def test_decode_dac_response_rejects_malformed_datagrams(data):
    with pytest.raises(ProtocolError):
        decode_dac_response(data)


def test_encode_general_response_is_decodable():
    data = encode_general_response("ServerName;H;;")
    assert data[:3] == b"\x05\x0e\x00"
    assert decode_general_response(data) == "ServerName;H;;"


def test_encode_general_response_rejects_oversized_payload():
    with pytest.raises(InvalidArgument):
        encode_general_response("x" * 0x10000)
