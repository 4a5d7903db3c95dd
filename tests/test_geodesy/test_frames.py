"""
Tests for the reference frame registry.
"""

import pytest

from eovtrans.core.errors import InputRangeError
from eovtrans.core.geodesy.frames import (
    FRAME_ALIASES,
    FRAMES,
    HUB_FRAME,
    HUB_LINKS,
    canonical_frame_id,
    list_frame_ids,
    resolve_frame,
)


class TestFrameRegistry:
    """Tests for frame lookup."""

    def test_supported_frames(self) -> None:
        """All five frames are registered."""
        assert set(FRAMES) == {"ETRF2000", "ETRS89", "ITRF2014", "ITRF20", "EOV"}
        assert HUB_FRAME == "ETRF2000"

    @pytest.mark.parametrize(
        "alias, frame_id",
        [
            ("WGS84", "ITRF2014"),
            ("wgs84", "ITRF2014"),
            ("RTK", "ETRF2000"),
            ("HD72", "EOV"),
            ("EPSG:23700", "EOV"),
            ("epsg:23700", "EOV"),
            ("ITRF2020", "ITRF20"),
            (" etrs89 ", "ETRS89"),
        ],
    )
    def test_aliases(self, alias: str, frame_id: str) -> None:
        """Aliases and case variants resolve to canonical ids."""
        assert canonical_frame_id(alias) == frame_id
        assert resolve_frame(alias).id == frame_id

    def test_unknown_frame(self) -> None:
        """Unknown frames raise with the list of valid ids."""
        with pytest.raises(InputRangeError) as exc_info:
            resolve_frame("NAD83")
        assert "NAD83" in exc_info.value.message
        assert exc_info.value.suggestions

    def test_list_frame_ids(self) -> None:
        """Aliases follow the canonical ids."""
        ids = list_frame_ids()
        assert ids[: len(FRAMES)] == list(FRAMES)
        assert set(FRAME_ALIASES).issubset(ids)
        assert list_frame_ids(include_aliases=False) == list(FRAMES)

    def test_hub_links(self) -> None:
        """Every frame has a hub link; the hub and ETRS89 need none."""
        assert set(HUB_LINKS) == set(FRAMES)
        assert HUB_LINKS["ETRF2000"] is None
        assert HUB_LINKS["ETRS89"] is None
        assert HUB_LINKS["ITRF20"].is_time_dependent
        assert not HUB_LINKS["ITRF2014"].is_time_dependent

    def test_eov_is_projected(self) -> None:
        """Only EOV carries a projection."""
        assert resolve_frame("EOV").is_projected
        assert resolve_frame("EOV").ellipsoid.name == "GRS67"
        assert not resolve_frame("ETRF2000").is_projected
        assert str(resolve_frame("EOV")).startswith("EOV")
