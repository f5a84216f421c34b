# python
"""
tests/test_protocol.py
UPDATE_FILES encoding and control-frame validation.
"""
import json

import jsonschema
import pytest

from dropshare.protocol import UPDATE_SCHEMA, encode_update, parse_control
from dropshare.snapshot import Entry, FileKind, Snapshot


def test_encode_update_shape():
    snap = Snapshot((Entry("a.txt", FileKind.FILE, 10), Entry("sub", FileKind.DIRECTORY)), 1.0)

    frame = json.loads(encode_update(snap))

    assert frame == {
        "event": "UPDATE_FILES",
        "data": [
            {"name": "a.txt", "type": "f", "size": 10},
            {"name": "sub", "type": "d", "size": 0},
        ],
    }
    jsonschema.validate(instance=frame, schema=UPDATE_SCHEMA)


def test_encode_update_keeps_unicode_names():
    snap = Snapshot((Entry("résumé.pdf", FileKind.FILE, 1),), 1.0)
    assert "résumé.pdf" in encode_update(snap)


def test_encode_empty_snapshot():
    assert json.loads(encode_update(Snapshot.empty())) == {"event": "UPDATE_FILES", "data": []}


@pytest.mark.parametrize(
    "text",
    [
        '{"event": "REQUEST_UPDATE"}',
        '{"event": "REQUEST_UPDATE", "data": null}',
        '{"event": "CREATE_FOLDER", "data": "photos"}',
    ],
)
def test_parse_control_accepts(text):
    assert parse_control(text) == json.loads(text)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "not json",
        "[]",
        '{"event": "UPDATE_FILES", "data": []}',
        '{"event": "CREATE_FOLDER"}',
        '{"event": "CREATE_FOLDER", "data": ""}',
        '{"event": "CREATE_FOLDER", "data": 5}',
        '{"event": "REQUEST_UPDATE", "extra": 1}',
        '{"data": "x"}',
    ],
)
def test_parse_control_rejects(text):
    assert parse_control(text) is None
