"""
Tests for the on-the-fly clip filter.
"""

import pytest

from clipsync.schemas.clips import ZoomClip
from clipsync.services.clip_filter import filter_on_the_fly, is_on_the_fly


@pytest.mark.parametrize(
    "record, expected",
    [
        ({"id": "a"}, True),
        ({"id": "a", "recording_meeting_id": None}, True),
        ({"id": "a", "recording_meeting_id": ""}, True),
        ({"id": "a", "recording_meeting_id": "84512345678"}, False),
        ({"id": "a", "recording_meeting_id": 84512345678}, False),
    ],
)
def test_is_on_the_fly_for_parsed_clips(record, expected):
    assert is_on_the_fly(ZoomClip.model_validate(record)) is expected


def test_is_on_the_fly_accepts_raw_mappings():
    assert is_on_the_fly({"id": "a"}) is True
    assert is_on_the_fly({"id": "a", "recording_meeting_id": ""}) is True
    assert is_on_the_fly({"id": "a", "recording_meeting_id": "m1"}) is False


def test_filter_on_the_fly_keeps_order(clip_factory):
    clips = [
        clip_factory("c1"),
        clip_factory("c2", recording_meeting_id="m1"),
        clip_factory("c3", recording_meeting_id=""),
        clip_factory("c4"),
    ]

    assert [c.clip_id for c in filter_on_the_fly(clips)] == ["c1", "c3", "c4"]
