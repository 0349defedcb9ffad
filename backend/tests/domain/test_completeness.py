"""Tests for weighted profile-completeness scoring."""

import copy

import pytest

from gridiron.domain.completeness import (
    DEFAULT_SECTIONS,
    ProfileSection,
    completeness_band,
    compute_completeness,
    is_present,
    score,
)

pytestmark = pytest.mark.unit


def _section(key: str, weight: float, is_complete: bool) -> ProfileSection:
    return ProfileSection(key=key, name=key.title(), weight=weight, is_complete=is_complete)


# ============================================================================
# compute_completeness
# ============================================================================


def test_partial_weights_round_to_nearest_percent():
    sections = [
        _section("personal", 15, False),
        _section("football", 15, False),
        _section("metrics", 15, True),
    ]

    assert compute_completeness(sections) == 33


def test_all_complete_is_100_and_none_complete_is_0():
    weights = [15, 15, 15, 15, 15, 10, 15]

    assert compute_completeness([_section(f"s{i}", w, True) for i, w in enumerate(weights)]) == 100
    assert compute_completeness([_section(f"s{i}", w, False) for i, w in enumerate(weights)]) == 0


def test_empty_section_list_scores_zero():
    assert compute_completeness([]) == 0


def test_half_rounds_up():
    sections = [_section("a", 1, True), _section("b", 199, False)]

    # 0.5% rounds up to 1
    assert compute_completeness(sections) == 1


@pytest.mark.parametrize(
    "weights,complete",
    [
        ([1, 2, 3], [True, False, True]),
        ([0.5, 99.5], [False, True]),
        ([7], [True]),
        ([10, 10, 10, 10], [False, False, False, True]),
    ],
)
def test_percentage_stays_within_bounds(weights, complete):
    sections = [_section(f"s{i}", w, c) for i, (w, c) in enumerate(zip(weights, complete))]

    assert 0 <= compute_completeness(sections) <= 100


def test_non_positive_weight_is_rejected():
    with pytest.raises(ValueError, match="positive weight"):
        ProfileSection(key="bad", name="Bad", weight=0)


# ============================================================================
# score
# ============================================================================


def test_score_empty_form_data():
    result = score({})

    assert result.percentage == 0
    assert result.completed_count == 0
    assert result.total_count == len(DEFAULT_SECTIONS)


def test_score_complete_form_data(complete_form_data):
    result = score(complete_form_data)

    assert result.percentage == 100
    assert result.completed_count == result.total_count == 7
    assert all(s.is_complete for s in result.sections)


def test_score_counts_only_fully_filled_sections(complete_form_data):
    form_data = {
        "personalInfo": complete_form_data["personalInfo"],
        "footballInfo": {"position": "QB"},  # yearsPlayed and teamLevel missing
        "nutrition": {"dietType": "balanced"},
    }

    result = score(form_data)

    assert result.completed_count == 2
    # (15 + 10) / 100
    assert result.percentage == 25
    complete_keys = {s.key for s in result.sections if s.is_complete}
    assert complete_keys == {"personalInfo", "nutrition"}


def test_zero_values_count_as_answered():
    form_data = {"footballInfo": {"position": "OL", "yearsPlayed": 0, "teamLevel": "jv"}}

    result = score(form_data)

    assert next(s for s in result.sections if s.key == "footballInfo").is_complete


def test_blank_strings_do_not_count():
    form_data = {"academicProfile": {"gpa": "   "}}

    assert score(form_data).completed_count == 0


def test_non_mapping_section_is_incomplete():
    assert score({"academicProfile": "3.5"}).completed_count == 0


def test_score_is_pure(complete_form_data):
    snapshot = copy.deepcopy(complete_form_data)

    first = score(complete_form_data)
    second = score(complete_form_data)

    assert first == second
    assert complete_form_data == snapshot
    assert not any(s.is_complete for s in DEFAULT_SECTIONS)


def test_score_accepts_none():
    assert score(None).percentage == 0


def test_custom_sections():
    sections = (
        ProfileSection(key="a", name="A", weight=3, required_fields=("x",)),
        ProfileSection(key="b", name="B", weight=1, required_fields=("y",)),
    )

    assert score({"a": {"x": 1}}, sections).percentage == 75


# ============================================================================
# helpers
# ============================================================================


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, False),
        ("", False),
        ("  ", False),
        ([], False),
        ({}, False),
        (0, True),
        (0.0, True),
        (False, True),
        ("QB", True),
        (["D1"], True),
    ],
)
def test_is_present(value, expected):
    assert is_present(value) is expected


@pytest.mark.parametrize("percentage,band", [(0, "low"), (29, "low"), (30, "medium"), (69, "medium"), (70, "high"), (100, "high")])
def test_completeness_band(percentage, band):
    assert completeness_band(percentage) == band
