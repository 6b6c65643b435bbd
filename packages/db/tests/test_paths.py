# This project was developed with assistance from AI tools.
"""Tests for the ScopePath value type."""

import pytest

from scopegate_db import InvalidScopeSegment, ScopePath


def test_root_encoding():
    root = ScopePath.root()
    assert root.is_root
    assert root.encode() == "/"
    assert root.leaf is None
    assert root.depth == 0


def test_encode_decode():
    path = ScopePath.of("t1", "o1", "d1")
    assert path.encode() == "/t1/o1/d1/"
    assert ScopePath.decode("/t1/o1/d1/") == path
    assert path.leaf == "d1"
    assert path.depth == 3


@pytest.mark.parametrize("encoded", [None, "", "/"])
def test_decode_root_forms(encoded):
    assert ScopePath.decode(encoded).is_root


def test_child_extends_path():
    assert ScopePath.of("t1").child("o1") == ScopePath.of("t1", "o1")


def test_covers_is_prefix_check():
    org = ScopePath.of("t1", "o1")
    assert org.covers(org)
    assert org.covers(ScopePath.of("t1", "o1", "d1"))
    assert not org.covers(ScopePath.of("t1"))
    assert not org.covers(ScopePath.of("t1", "o2", "d1"))
    assert ScopePath.root().covers(org)


def test_covers_compares_whole_segments():
    assert not ScopePath.of("t1", "o1").covers(ScopePath.of("t1", "o10"))


def test_contains_segment():
    path = ScopePath.of("t1", "o1")
    assert path.contains("o1")
    assert not path.contains("o")


@pytest.mark.parametrize("segment", ["", "a/b"])
def test_invalid_segments_rejected(segment):
    with pytest.raises(InvalidScopeSegment):
        ScopePath.of("t1", segment)


def test_str_is_encoded_form():
    assert str(ScopePath.of("t1")) == "/t1/"
