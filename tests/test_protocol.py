import json

import pytest

from whatsminer_api.errors import ProtocolError, TokenError
from whatsminer_api.protocol import (
    PLAIN_COMMANDS,
    PRIVILEGED_COMMANDS,
    Token,
    build_command,
    check_status,
    decode_message,
    encode_message,
    find_message_end,
    parse_token,
)


def test_build_command_merges_params_and_sign():
    assert build_command("summary") == {"cmd": "summary"}
    assert build_command("set_zone", {"timezone": "CST-8", "zonename": "Asia/Shanghai"}, sign="abc") == {
        "cmd": "set_zone",
        "timezone": "CST-8",
        "zonename": "Asia/Shanghai",
        "token": "abc",
    }


@pytest.mark.parametrize(
    "command",
    [
        {"cmd": "summary"},
        {"cmd": "get_miner_info", "info": "ip,mac"},
        {"cmd": "update_pools", "pool1": "stratum+tcp://p:3333", "worker1": "wörker", "token": "x"},
    ],
)
def test_plain_command_json_roundtrip(command):
    encoded = encode_message(command)
    assert b", " not in encoded and b": " not in encoded
    assert json.loads(encoded.decode("utf-8")) == command


def test_decode_message_rejects_garbage():
    with pytest.raises(ProtocolError):
        decode_message(b"{not json")
    with pytest.raises(ProtocolError):
        decode_message(b"[1, 2]")


def test_check_status_raises_with_device_details():
    response = {"STATUS": "E", "When": 1, "Code": 45, "Msg": "permission denied", "Description": ""}
    with pytest.raises(ProtocolError) as excinfo:
        check_status(response)

    assert excinfo.value.code == 45
    assert excinfo.value.response is response
    ok = {"STATUS": "S", "Code": 131}
    assert check_status(ok) is ok


def test_parse_token():
    response = {"STATUS": "S", "Code": 134, "Msg": {"time": "4567", "salt": "BQ5hoXV9", "newsalt": "jbzkfQls"}}
    assert parse_token(response) == Token(time="4567", salt="BQ5hoXV9", newsalt="jbzkfQls")


@pytest.mark.parametrize(
    "response",
    [
        {"STATUS": "E", "Code": 136, "Msg": "over max"},
        {"STATUS": "S", "Code": 134, "Msg": "nope"},
        {"STATUS": "S", "Code": 134, "Msg": {"time": "1", "salt": "a"}},
    ],
)
def test_parse_token_failures(response):
    with pytest.raises(TokenError):
        parse_token(response)


def test_find_message_end():
    header = b'{"enc":"ab}c\\"d"}'
    assert find_message_end(header) == len(header)
    assert find_message_end(header + b"\x1f\x8b\x08binary}") == len(header)
    assert find_message_end(b'{"enc":"abc') is None
    assert find_message_end(b'  {"a":{"b":1}}rest') == 15
    with pytest.raises(ProtocolError):
        find_message_end(b"\x1f\x8b{}")


def test_command_sets_are_disjoint():
    assert not PLAIN_COMMANDS & PRIVILEGED_COMMANDS
    assert "get_token" in PLAIN_COMMANDS
    assert "download_logs" in PRIVILEGED_COMMANDS
