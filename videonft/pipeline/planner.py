"""Bitrate/resolution planning for fitting an asset under a marketplace size limit.

Output size is assumed to scale linearly with the combined (video + audio)
bitrate at a fixed duration. That is exact for constant-bitrate encodes and
an approximation otherwise; container overhead is ignored.
"""
import math
from typing import Optional
from videonft.domain.errors import AssetTooLargeError
from videonft.domain.models import Asset, NormalizationPlan, SizeConstraint, TranscodeProfile

MIN_720P_BITRATE = 500_000
LOW_BITRATE_MAX_HEIGHT = 720
MIN_RESIZE_HEIGHT = 480

PROFILE_480P = ("480p", 854, 480)
PROFILE_720P = ("720p", 1280, 720)


def compute_desired_bitrate(asset: Asset, constraint: Optional[SizeConstraint] = None) -> Optional[int]:
    """Returns the video bitrate (bps) that brings ``asset`` under the size limit.

    ``None`` means nothing has to be done: the asset already fits or there is
    no video bitrate to scale. Raises :class:`AssetTooLargeError` when the
    required bitrate falls below the configured floor.
    """
    constraint = constraint or SizeConstraint()
    size = asset.size_bytes
    video = asset.video_track
    bitrate = video.bitrate if video and video.bitrate else 0
    if size <= constraint.size_limit_bytes or not bitrate:
        return None

    audio = asset.audio_track
    audio_bitrate = audio.bitrate if audio and audio.bitrate else 0

    target_total = math.floor((bitrate + audio_bitrate) * (constraint.size_limit_bytes / size))
    desired = target_total - audio_bitrate
    if desired < constraint.min_bitrate_bps:
        raise AssetTooLargeError(size, constraint.size_limit_bytes, desired, constraint.min_bitrate_bps)
    return desired


def build_profile(asset: Asset, desired_bitrate: int, min_720p_bitrate: int = MIN_720P_BITRATE) -> TranscodeProfile:
    """Chooses the output resolution for ``desired_bitrate``.

    Resolution only changes when the bitrate drops a lot, and never below
    480p. Aspect ratio is left to the remote encoder.
    """
    video = asset.video_track
    bitrate = (video.bitrate if video else None) or 1
    width = (video.width if video else None) or 0
    height = (video.height if video else None) or 0

    reference_height = height * math.sqrt(desired_bitrate / bitrate)
    if height < MIN_RESIZE_HEIGHT or reference_height > LOW_BITRATE_MAX_HEIGHT:
        name = "low-bitrate"
    elif desired_bitrate < min_720p_bitrate:
        name, width, height = PROFILE_480P
    else:
        name, width, height = PROFILE_720P

    return TranscodeProfile(name=name, width=width, height=height, bitrate=desired_bitrate, fps=0)


def plan_normalization(
    asset: Asset,
    constraint: Optional[SizeConstraint] = None,
    min_720p_bitrate: int = MIN_720P_BITRATE,
) -> NormalizationPlan:
    try:
        desired = compute_desired_bitrate(asset, constraint)
    except AssetTooLargeError:
        return NormalizationPlan(possible=False, profile=None)
    if desired is None:
        return NormalizationPlan(possible=True, profile=None)
    return NormalizationPlan(possible=True, profile=build_profile(asset, desired, min_720p_bitrate))
