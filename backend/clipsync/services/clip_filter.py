"""
Classification of Zoom clips.

An "on the fly" clip was recorded outside any scheduled meeting recording,
which Zoom signals by leaving ``recording_meeting_id`` empty. Only those
clips are tracked; recording-derived clips are ignored.
"""

from typing import Iterable, List, Mapping, Union

from clipsync.schemas.clips import ZoomClip

ClipLike = Union[ZoomClip, Mapping[str, object]]


def is_on_the_fly(clip: ClipLike) -> bool:
    """True iff the clip's ``recording_meeting_id`` is absent, None or empty."""
    if isinstance(clip, Mapping):
        meeting_id = clip.get("recording_meeting_id")
    else:
        meeting_id = clip.recording_meeting_id
    return meeting_id is None or meeting_id == ""


def filter_on_the_fly(clips: Iterable[ZoomClip]) -> List[ZoomClip]:
    """Keep on-the-fly clips, preserving order."""
    return [clip for clip in clips if is_on_the_fly(clip)]
