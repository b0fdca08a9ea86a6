"""Tests for mentor eligibility, compatibility scoring and ranking."""

import random

import pytest
from pydantic import ValidationError

from recommender.mentorship import (
    MatchPolicy,
    MatchWeights,
    MentorshipMatcher,
    experience_fit,
    normalize_term,
    rating_quality,
)
from recommender.models import MentorProfile
from recommender.schemas import MenteeRequest
from shared_types import MenteeLevel, MentorshipStyle, ProficiencyLevel


def _request(**overrides):
    data = {
        "skills_to_learn": ["Go", "Python"],
        "experience_level": "intermediate",
        "min_compatibility_score": 0.0,
    }
    data.update(overrides)
    return MenteeRequest(**data)


class TestFactors:
    def test_experience_fit_exact_match(self):
        assert experience_fit(MenteeLevel.INTERMEDIATE, ProficiencyLevel.INTERMEDIATE, MatchPolicy()) == 1.0

    def test_experience_fit_graded_by_distance(self):
        policy = MatchPolicy()
        assert experience_fit(MenteeLevel.ADVANCED, ProficiencyLevel.EXPERT, policy) == pytest.approx(0.6)
        assert experience_fit(MenteeLevel.BEGINNER, ProficiencyLevel.ADVANCED, policy) == pytest.approx(0.2)
        assert experience_fit(MenteeLevel.BEGINNER, ProficiencyLevel.EXPERT, policy) == 0.0

    def test_experience_fit_all_levels_and_unspecified(self):
        policy = MatchPolicy()
        assert experience_fit(MenteeLevel.ALL_LEVELS, ProficiencyLevel.BEGINNER, policy) == 0.8
        assert experience_fit(None, ProficiencyLevel.BEGINNER, policy) == 0.5
        assert experience_fit(MenteeLevel.BEGINNER, None, policy) == 0.5

    def test_rating_quality(self):
        assert rating_quality(None) == 0.0
        assert rating_quality(4.0) == pytest.approx(0.8)
        assert rating_quality(7.0) == 1.0

    def test_normalize_term(self):
        assert normalize_term("  Machine   Learning ") == "machine learning"
        assert normalize_term(" Go ", mode="exact") == "Go"


class TestWeights:
    def test_defaults_sum_to_one(self):
        assert MatchWeights().total == pytest.approx(1.0)

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            MatchWeights(style=-0.1)

    def test_rejects_all_zero(self):
        with pytest.raises(ValueError):
            MatchWeights(0, 0, 0, 0, 0)

    def test_policy_rejects_unknown_match_mode(self):
        with pytest.raises(ValueError):
            MatchPolicy(skill_match="fuzzy")


class TestScore:
    def test_full_breakdown(self, sample_mentors):
        ada = sample_mentors[0]
        score, factors, shared = MentorshipMatcher().score(_request(), ada)
        assert shared == ["Go", "Python"]
        assert factors == {
            "skill_overlap": 1.0,
            "experience_fit": 1.0,
            "style": 0.5,
            "quality": pytest.approx(0.96),
            "schedule": 0.5,
        }
        assert score == pytest.approx(0.869)

    def test_normalized_vocabulary_matches_case(self, sample_mentors):
        linus = sample_mentors[1]
        score, factors, shared = MentorshipMatcher().score(_request(), linus)
        assert shared == ["Go"]
        assert factors["skill_overlap"] == 0.5
        assert score == pytest.approx(0.605)

    def test_exact_vocabulary_is_case_sensitive(self, sample_mentors):
        linus = sample_mentors[1]
        matcher = MentorshipMatcher(policy=MatchPolicy(skill_match="exact"))
        _, factors, shared = matcher.score(_request(), linus)
        assert shared == []
        assert factors["skill_overlap"] == 0.0

    def test_style_match_and_mismatch(self, sample_mentors):
        ada = sample_mentors[0]
        matcher = MentorshipMatcher()
        _, factors, _ = matcher.score(_request(preferred_mentorship_style="structured"), ada)
        assert factors["style"] == 1.0
        _, factors, _ = matcher.score(_request(preferred_mentorship_style="FLEXIBLE"), ada)
        assert factors["style"] == 0.0

    def test_schedule_overlap_fraction(self, sample_mentors):
        ada, linus = sample_mentors[0], sample_mentors[1]
        request = _request(preferred_time_slots=["mon-evening", "sat-morning"])
        matcher = MentorshipMatcher()
        assert matcher.score(request, ada)[1]["schedule"] == 1.0
        assert matcher.score(request, linus)[1]["schedule"] == 0.5

    def test_score_bounded(self, sample_mentors):
        matcher = MentorshipMatcher(MatchWeights(5, 4, 3, 2, 1))
        for mentor in sample_mentors:
            score, _, _ = matcher.score(_request(), mentor)
            assert 0.0 <= score <= 1.0


class TestMatch:
    def test_ranked_and_filtered(self, sample_mentors):
        matches = MentorshipMatcher().match(_request(min_compatibility_score=0.6), sample_mentors)
        assert [m.mentor_id for m in matches] == ["m-ada", "m-linus"]
        assert matches[0].compatibility_score > matches[1].compatibility_score

    def test_threshold_excludes_low_scores(self, sample_mentors):
        matches = MentorshipMatcher().match(_request(min_compatibility_score=0.7), sample_mentors)
        assert [m.mentor_id for m in matches] == ["m-ada"]

    def test_never_returns_full_or_unavailable(self, sample_mentors):
        matches = MentorshipMatcher().match(_request(), sample_mentors)
        ids = {m.mentor_id for m in matches}
        assert "m-full" not in ids
        assert "m-away" not in ids
        for m in matches:
            assert m.mentor_profile.current_mentees < m.mentor_profile.max_mentees
            assert m.mentor_profile.is_available

    def test_industry_is_hard_filter(self, sample_mentors):
        matches = MentorshipMatcher().match(_request(industry_preference=" fintech "), sample_mentors)
        assert [m.mentor_id for m in matches] == ["m-ada"]

    def test_mentee_never_matched_with_self(self, sample_mentors):
        matches = MentorshipMatcher().match(_request(mentee_id="ada"), sample_mentors)
        assert "m-ada" not in {m.mentor_id for m in matches}

    def test_empty_pool_or_skills_yield_empty(self, sample_mentors):
        matcher = MentorshipMatcher()
        assert matcher.match(_request(), []) == []
        assert matcher.match(_request(skills_to_learn=[]), sample_mentors) == []
        assert matcher.match(_request(skills_to_learn=["  "]), sample_mentors) == []

    def test_max_results_truncates(self, sample_mentors):
        assert len(MentorshipMatcher().match(_request(max_results=1), sample_mentors)) == 1
        assert MentorshipMatcher().match(_request(max_results=0), sample_mentors) == []

    def test_tie_break_rating_reviews_id(self):
        pool = [
            MentorProfile(id="z", expertise_areas={"Go"}, average_rating=4.0, total_reviews=5),
            MentorProfile(id="b", expertise_areas={"Go"}, average_rating=4.5, total_reviews=5),
            MentorProfile(id="a", expertise_areas={"Go"}, average_rating=4.0, total_reviews=5),
            MentorProfile(id="c", expertise_areas={"Go"}, average_rating=4.0, total_reviews=20),
        ]
        # quality weight 0 so rating differences do not move the score
        matcher = MentorshipMatcher(MatchWeights(quality=0.0))
        matches = matcher.match(_request(skills_to_learn=["Go"]), pool)
        assert len({m.compatibility_score for m in matches}) == 1
        assert [m.mentor_id for m in matches] == ["b", "c", "a", "z"]

    def test_idempotent_over_pool_order(self, sample_mentors):
        matcher = MentorshipMatcher()
        request = _request()
        expected = [m.mentor_id for m in matcher.match(request, sample_mentors)]
        shuffled = list(sample_mentors)
        for seed in range(5):
            random.Random(seed).shuffle(shuffled)
            assert [m.mentor_id for m in matcher.match(request, shuffled)] == expected

    def test_match_reasons(self, sample_mentors):
        ada = MentorshipMatcher().match(_request(), sample_mentors)[0]
        assert ada.match_reasons[0].startswith("Covers 2 of 2 skills")
        assert "Prefers mentees at your experience level" in ada.match_reasons
        assert any("12 years" in r for r in ada.match_reasons)
        assert any("4.8/5.0" in r for r in ada.match_reasons)
        assert ada.match_reason == "; ".join(ada.match_reasons)


class TestMenteeRequest:
    def test_enum_case_insensitive(self):
        req = MenteeRequest(experience_level="EXPERT", preferred_mentorship_style="Project_Based")
        assert req.experience_level == ProficiencyLevel.EXPERT
        assert req.preferred_mentorship_style == MentorshipStyle.PROJECT_BASED

    def test_defaults(self):
        req = MenteeRequest()
        assert req.min_compatibility_score == 0.6
        assert req.max_results == 10

    @pytest.mark.parametrize("field,value", [("min_compatibility_score", 1.5), ("max_results", -1)])
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            MenteeRequest(**{field: value})
