import pytest
from videonft.domain.errors import AssetTooLargeError
from videonft.domain.models import SizeConstraint
from videonft.pipeline.planner import build_profile, compute_desired_bitrate, plan_normalization

LIMIT = SizeConstraint(size_limit_bytes=100_000_000, min_bitrate_bps=100_000)

def test_asset_under_limit_needs_nothing(asset_factory):
    asset = asset_factory(size=50_000_000, video_bitrate=1_000_000)
    assert compute_desired_bitrate(asset, LIMIT) is None

def test_asset_exactly_at_limit_needs_nothing(asset_factory):
    asset = asset_factory(size=100_000_000, video_bitrate=1_000_000)
    assert compute_desired_bitrate(asset, LIMIT) is None

def test_missing_size_is_never_over_budget(asset_factory):
    asset = asset_factory(size=None, video_bitrate=1_000_000)
    assert asset.size_bytes == 0
    assert compute_desired_bitrate(asset, LIMIT) is None

def test_missing_video_track_is_not_computable(asset_factory):
    asset = asset_factory(size=500_000_000, with_video=False, audio_bitrate=128_000)
    assert compute_desired_bitrate(asset, LIMIT) is None

def test_video_track_without_bitrate_is_not_computable(asset_factory):
    asset = asset_factory(size=500_000_000, video_bitrate=None)
    assert compute_desired_bitrate(asset, LIMIT) is None

def test_proportional_scaling_with_audio(asset_factory):
    asset = asset_factory(size=200_000_000, video_bitrate=2_000_000, audio_bitrate=128_000)
    # (2_000_000 + 128_000) * 0.5 - 128_000
    assert compute_desired_bitrate(asset, LIMIT) == 936_000

def test_proportional_scaling_without_audio(asset_factory):
    asset = asset_factory(size=400_000_000, video_bitrate=8_000_000)
    assert compute_desired_bitrate(asset, LIMIT) == 2_000_000

def test_default_constraint_is_100mb(asset_factory):
    asset = asset_factory(size=200_000_000, video_bitrate=2_000_000, audio_bitrate=128_000)
    assert compute_desired_bitrate(asset) == 936_000

def test_too_large_asset_raises(asset_factory):
    asset = asset_factory(size=2_000_000_000, video_bitrate=2_000_000, audio_bitrate=128_000)
    with pytest.raises(AssetTooLargeError) as exc_info:
        compute_desired_bitrate(asset, LIMIT)
    assert exc_info.value.min_bitrate == 100_000
    assert exc_info.value.desired_bitrate < 100_000

def test_desired_equal_to_floor_is_accepted(asset_factory):
    asset = asset_factory(size=200_000_000, video_bitrate=200_000)
    assert compute_desired_bitrate(asset, LIMIT) == 100_000

def test_desired_just_below_floor_raises(asset_factory):
    asset = asset_factory(size=200_000_000, video_bitrate=199_998)
    with pytest.raises(AssetTooLargeError):
        compute_desired_bitrate(asset, LIMIT)

def test_mild_cut_keeps_resolution(asset_factory):
    asset = asset_factory(video_bitrate=2_000_000, width=1920, height=1080)
    profile = build_profile(asset, 936_000)
    # 1080 * sqrt(0.468) ~= 739 > 720
    assert profile.name == "low-bitrate"
    assert (profile.width, profile.height) == (1920, 1080)
    assert profile.bitrate == 936_000
    assert profile.fps == 0

def test_large_cut_downscales_to_720p(asset_factory):
    asset = asset_factory(video_bitrate=4_000_000, width=1920, height=1080)
    profile = build_profile(asset, 600_000)
    assert profile.name == "720p"
    assert (profile.width, profile.height) == (1280, 720)
    assert profile.bitrate == 600_000

def test_low_bitrate_downscales_to_480p(asset_factory):
    asset = asset_factory(video_bitrate=4_000_000, width=1920, height=1080)
    profile = build_profile(asset, 400_000)
    assert profile.name == "480p"
    assert (profile.width, profile.height) == (854, 480)

def test_reference_height_exactly_720_is_not_low_bitrate(asset_factory):
    asset = asset_factory(video_bitrate=1_000_000, width=1280, height=720)
    profile = build_profile(asset, 1_000_000)
    assert profile.name == "720p"

def test_height_exactly_480_can_be_resized(asset_factory):
    asset = asset_factory(video_bitrate=1_000_000, width=854, height=480)
    profile = build_profile(asset, 250_000)
    assert profile.name == "480p"

@pytest.mark.parametrize("desired", [100_000, 450_000, 900_000, 5_000_000])
def test_small_source_always_low_bitrate(asset_factory, desired):
    asset = asset_factory(video_bitrate=10_000_000, width=640, height=360)
    profile = build_profile(asset, desired)
    assert profile.name == "low-bitrate"
    assert (profile.width, profile.height) == (640, 360)

def test_build_profile_without_video_track(asset_factory):
    asset = asset_factory(with_video=False)
    profile = build_profile(asset, 500_000)
    assert profile.name == "low-bitrate"
    assert (profile.width, profile.height) == (0, 0)

def test_build_profile_is_deterministic(asset_factory):
    asset = asset_factory(video_bitrate=4_000_000, width=1920, height=1080)
    assert build_profile(asset, 600_000) == build_profile(asset, 600_000)

def test_custom_720p_threshold(asset_factory):
    asset = asset_factory(video_bitrate=4_000_000, width=1920, height=1080)
    assert build_profile(asset, 600_000, min_720p_bitrate=700_000).name == "480p"

def test_plan_nothing_to_do(asset_factory):
    plan = plan_normalization(asset_factory(size=10_000_000), LIMIT)
    assert plan.possible is True
    assert plan.profile is None

def test_plan_with_profile(asset_factory):
    asset = asset_factory(size=200_000_000, video_bitrate=2_000_000, audio_bitrate=128_000)
    plan = plan_normalization(asset, LIMIT)
    assert plan.possible is True
    assert plan.profile.name == "low-bitrate"
    assert plan.profile.bitrate == 936_000

def test_plan_impossible(asset_factory):
    asset = asset_factory(size=2_000_000_000, video_bitrate=2_000_000, audio_bitrate=128_000)
    plan = plan_normalization(asset, LIMIT)
    assert plan.possible is False
    assert plan.profile is None
