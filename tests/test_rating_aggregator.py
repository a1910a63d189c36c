"""Tests for rating summaries, distributions and target rankings."""

import pytest

from transit_civic.core.exceptions import ValidationError
from transit_civic.models.feedback import FeedbackType
from transit_civic.services.rating_aggregator import RatingAggregator, round_rating

pytestmark = pytest.mark.unit


@pytest.fixture
def aggregator(storage) -> RatingAggregator:
    return RatingAggregator(storage)


class TestRounding:

    @pytest.mark.parametrize("value,expected", [
        (13 / 3, 4.3),
        (4.25, 4.3),
        (3.75, 3.8),
        (3.0, 3.0),
        (2.04, 2.0),
        (1.5, 1.5),
    ])
    def test_one_decimal_half_up(self, value, expected):
        assert round_rating(value) == expected


class TestSummarize:

    def test_average_and_count(self, aggregator, make_feedback):
        for rating in (4, 4, 5):
            make_feedback(target_id="205", rating=rating)

        summary = aggregator.summarize(FeedbackType.LINE, ["205"])

        assert summary["205"].avg == 4.3
        assert summary["205"].count == 3

    def test_hidden_feedback_excluded(self, aggregator, make_feedback):
        make_feedback(target_id="205", rating=5)
        make_feedback(target_id="205", rating=1, hidden=True)

        summary = aggregator.summarize(FeedbackType.LINE, ["205"])

        assert summary["205"].avg == 5.0
        assert summary["205"].count == 1

    def test_targets_without_feedback_absent(self, aggregator, make_feedback):
        make_feedback(target_id="205", rating=3)

        summary = aggregator.summarize(FeedbackType.LINE, ["205", "500"])

        assert set(summary) == {"205"}

    def test_only_hidden_feedback_is_absent(self, aggregator, make_feedback):
        make_feedback(target_id="205", hidden=True)

        assert aggregator.summarize(FeedbackType.LINE, ["205"]) == {}

    def test_type_scopes_results(self, aggregator, make_feedback):
        make_feedback(target_id="205", rating=2, feedback_type=FeedbackType.LINE)
        make_feedback(target_id="205", rating=5, feedback_type=FeedbackType.STOP)

        summary = aggregator.summarize(FeedbackType.STOP, ["205"])

        assert summary["205"].avg == 5.0

    def test_ids_are_trimmed_and_deduplicated(self, aggregator, make_feedback):
        make_feedback(target_id="205", rating=4)

        summary = aggregator.summarize(FeedbackType.LINE, [" 205 ", "205", "", "x" * 101])

        assert summary["205"].count == 1

    def test_stop_ids_with_agency_prefix(self, aggregator, make_feedback):
        make_feedback(target_id="2:BRRS2", rating=2, feedback_type=FeedbackType.STOP)

        summary = aggregator.summarize(FeedbackType.STOP, ["2:BRRS2"])

        assert summary["2:BRRS2"].avg == 2.0

    def test_empty_id_list_rejected(self, aggregator):
        with pytest.raises(ValidationError):
            aggregator.summarize(FeedbackType.LINE, ["", "  "])

    def test_more_than_max_ids_rejected(self, aggregator):
        with pytest.raises(ValidationError, match="Maximum 100"):
            aggregator.summarize(FeedbackType.LINE, [f"t{i}" for i in range(101)])

    def test_exactly_max_ids_accepted(self, aggregator):
        assert aggregator.summarize(FeedbackType.LINE, [f"t{i}" for i in range(100)]) == {}


class TestDescribeTarget:

    def test_distribution_by_star(self, aggregator, make_feedback):
        for rating in (1, 5, 5, 4):
            make_feedback(target_id="205", rating=rating)
        make_feedback(target_id="205", rating=2, hidden=True)

        detail = aggregator.describe_target(FeedbackType.LINE, "205")

        assert detail.distribution == [1, 0, 0, 1, 2]
        assert detail.count == 4
        assert detail.avg == 3.8

    def test_unrated_target_has_zero_summary(self, aggregator):
        detail = aggregator.describe_target(FeedbackType.LINE, "999")

        assert (detail.avg, detail.count) == (0.0, 0)
        assert detail.distribution == [0, 0, 0, 0, 0]


class TestRankTargets:

    @pytest.fixture
    def seeded(self, make_feedback):
        # a: 3 reviews avg 2.0, b: 1 review avg 5.0, c: 3 reviews avg 4.0
        for rating in (1, 2, 3):
            make_feedback(target_id="a", rating=rating)
        make_feedback(target_id="b", rating=5)
        for rating in (4, 4, 4):
            make_feedback(target_id="c", rating=rating)

    def test_sort_by_count_breaks_ties_by_target_id(self, aggregator, seeded):
        ranking = aggregator.rank_targets(FeedbackType.LINE, sort="count")

        assert [r.target_id for r in ranking] == ["a", "c", "b"]

    def test_sort_by_avg_ascending(self, aggregator, seeded):
        ranking = aggregator.rank_targets(FeedbackType.LINE, sort="avg", order="asc")

        assert [r.target_id for r in ranking] == ["a", "c", "b"]

    def test_min_count_and_limit(self, aggregator, seeded):
        ranking = aggregator.rank_targets(FeedbackType.LINE, sort="avg", min_count=2, limit=1)

        assert [r.target_id for r in ranking] == ["c"]

    @pytest.mark.parametrize("kwargs", [
        {"sort": "votes"},
        {"order": "sideways"},
        {"limit": 0},
        {"limit": 201},
    ])
    def test_invalid_parameters_rejected(self, aggregator, kwargs):
        with pytest.raises(ValidationError):
            aggregator.rank_targets(FeedbackType.LINE, **kwargs)
