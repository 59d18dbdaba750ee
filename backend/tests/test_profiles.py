"""
Ideal creator profiles sheet loading.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from creatorscout.services.profiles import build_profile_descriptions, load_ideal_profiles

SAMPLE_SHEET = Path(__file__).parent.parent.parent / "data" / "ideal_creator_profiles.csv"

HEADERS = (
    "Profile,Short description,Example creators (illustrative),"
    "Audience scale / tier,Why they fit (content & audience)"
)


def write_sheet(tmp_path, *rows: str, headers: str = HEADERS) -> str:
    path = tmp_path / "profiles.csv"
    path.write_text("\n".join([headers, *rows]) + "\n", encoding="utf-8")
    return str(path)


class TestLoadIdealProfiles:
    def test_quoted_fields_keep_their_commas(self, tmp_path):
        path = write_sheet(
            tmp_path,
            '"UGC Ad Creative","Makes ads, hooks, and scripts","@one, @two",Micro,"Ships fast, tests a lot"',
        )
        [profile] = load_ideal_profiles(path)
        assert profile.name == "UGC Ad Creative"
        assert profile.description == "Makes ads, hooks, and scripts"
        assert profile.examples == "@one, @two"
        assert profile.audience_scale == "Micro"
        assert profile.rationale == "Ships fast, tests a lot"

    def test_declared_order_and_blank_rows(self, tmp_path):
        path = write_sheet(tmp_path, "B,b,,,", ",orphan row,,,", "A,a,,,", "C,c,,,")
        assert [p.name for p in load_ideal_profiles(path)] == ["B", "A", "C"]

    def test_missing_profile_column(self, tmp_path):
        path = write_sheet(tmp_path, "x,y", headers="Name,Description")
        with pytest.raises(ValueError, match="Profile"):
            load_ideal_profiles(path)

    def test_missing_optional_columns(self, tmp_path):
        path = write_sheet(tmp_path, "Solo", headers="Profile")
        [profile] = load_ideal_profiles(path)
        assert profile.description == ""
        assert profile.rationale == ""

    def test_bundled_sheet(self):
        profiles = load_ideal_profiles(str(SAMPLE_SHEET))
        assert len(profiles) == 5
        assert len({p.name for p in profiles}) == 5


class TestProfileDescriptions:
    def test_numbered_lines(self, tmp_path):
        path = write_sheet(tmp_path, "A,desc a,ex a,Micro,why a", "B,desc b,ex b,Macro,why b")
        text = build_profile_descriptions(load_ideal_profiles(path))
        assert text.splitlines() == [
            "1. A: desc a. Examples: ex a. Scale: Micro. Why: why a",
            "2. B: desc b. Examples: ex b. Scale: Macro. Why: why b",
        ]
