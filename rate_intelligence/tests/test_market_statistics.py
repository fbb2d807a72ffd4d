"""
Tests for the pure market statistics services.

Test Categories:
1. Median and market metrics
2. Percentile position and categories
3. Market segmentation tiers
4. Rate clustering
5. Competitive gap detection
6. Market commentary lines
"""

import math

import pytest

from rate_intelligence.models import GapRecommendation, PositionCategory
from rate_intelligence.services.gap_detection import (
    GapPolicy,
    detect_gaps,
    summarize_gap_direction,
)
from rate_intelligence.services.market_commentary import (
    INSUFFICIENT_DATA_MESSAGE,
    gap_commentary,
    generate_market_recommendations,
    market_condition_commentary,
    tier_commentary,
)
from rate_intelligence.services.market_position import (
    analyze_position,
    calculate_market_metrics,
    calculate_median,
    categorize_percentile,
)
from rate_intelligence.services.market_segmentation import segment_market
from rate_intelligence.services.rate_clustering import (
    find_rate_cluster,
    identify_rate_clusters,
)
from rate_intelligence.tests.conftest import make_observation, make_observations


# =============================================================================
# Median and Metrics
# =============================================================================


class TestMedianAndMetrics:
    """Tests for calculate_median and calculate_market_metrics."""

    def test_even_count_median_is_mean_of_middle_values(self):
        assert calculate_median([100, 110, 120, 130]) == 115.0

    def test_odd_count_median_is_middle_value(self):
        assert calculate_median([120, 100, 110]) == 110.0

    def test_empty_median_raises(self):
        with pytest.raises(ValueError):
            calculate_median([])

    def test_metrics_use_population_std(self):
        metrics = calculate_market_metrics(make_observations([100.0, 200.0]))

        assert metrics.average == 150.0
        assert metrics.minimum == 100.0
        assert metrics.maximum == 200.0
        assert metrics.standardDeviation == pytest.approx(50.0)
        assert metrics.coefficientOfVariation == pytest.approx(1 / 3)
        assert metrics.count == 2

    def test_zero_average_has_zero_cv(self):
        metrics = calculate_market_metrics(make_observations([0.0, 0.0]))
        assert metrics.coefficientOfVariation == 0.0

    def test_empty_metrics_raise(self):
        with pytest.raises(ValueError):
            calculate_market_metrics([])


# =============================================================================
# Position
# =============================================================================


class TestMarketPosition:
    """Tests for analyze_position."""

    def test_premium_position(self):
        observations = make_observations([100.0, 110.0, 120.0, 130.0])

        position = analyze_position(125.0, observations)

        assert position.percentile == 75
        assert position.category == PositionCategory.PREMIUM
        assert position.gapToMedian == pytest.approx(10.0)
        assert position.gapToClosestCompetitor == pytest.approx(5.0)

    def test_rate_below_everyone_is_value_at_zero(self):
        position = analyze_position(50.0, make_observations([100.0, 110.0]))

        assert position.percentile == 0
        assert position.category == PositionCategory.VALUE

    def test_equal_rates_are_not_counted_below(self):
        position = analyze_position(100.0, make_observations([100.0, 100.0, 100.0]))
        assert position.percentile == 0

    def test_percentile_rounds_half_up(self):
        # 1 of 8 below -> 12.5 -> 13
        rates = [90.0, 100.0, 101.0, 102.0, 103.0, 104.0, 105.0, 106.0]
        position = analyze_position(95.0, make_observations(rates))
        assert position.percentile == 13

    def test_closest_competitor_tie_takes_lower_rate(self):
        position = analyze_position(110.0, make_observations([120.0, 100.0]))
        assert position.gapToClosestCompetitor == pytest.approx(10.0)

    def test_percentile_bounded_and_monotonic(self):
        observations = make_observations([80.0, 95.0, 120.0, 150.0, 151.0, 210.0])
        previous = -1

        for rate in range(50, 260, 5):
            percentile = analyze_position(float(rate), observations).percentile
            assert 0 <= percentile <= 100
            assert percentile >= previous
            previous = percentile

    def test_categories_at_boundaries(self):
        assert categorize_percentile(75) == PositionCategory.PREMIUM
        assert categorize_percentile(74) == PositionCategory.COMPETITIVE
        assert categorize_percentile(25) == PositionCategory.COMPETITIVE
        assert categorize_percentile(24) == PositionCategory.VALUE

    def test_empty_observations_raise(self):
        with pytest.raises(ValueError):
            analyze_position(100.0, [])


# =============================================================================
# Segmentation
# =============================================================================


class TestMarketSegmentation:
    """Tests for segment_market."""

    def test_ten_competitors_split_three_four_three(self):
        observations = make_observations([float(r) for r in range(100, 200, 10)])

        seg = segment_market(observations)

        assert [o.rate for o in seg.premiumTier] == [190.0, 180.0, 170.0]
        assert len(seg.midTier) == 4
        assert [o.rate for o in seg.valueTier] == [120.0, 110.0, 100.0]
        assert seg.averageRates.premium == pytest.approx(180.0)

    def test_single_competitor_is_premium(self):
        seg = segment_market(make_observations([150.0]))

        assert len(seg.premiumTier) == 1
        assert seg.midTier == []
        assert seg.valueTier == []
        assert math.isnan(seg.averageRates.mid)
        assert math.isnan(seg.averageRates.value)

    def test_tiers_partition_every_observation(self):
        for n in range(1, 51):
            observations = make_observations([100.0 + i * 3 for i in range(n)])

            seg = segment_market(observations)

            assert len(seg.premiumTier) + len(seg.midTier) + len(seg.valueTier) == n
            ids = {o.competitorId for o in seg.premiumTier + seg.midTier + seg.valueTier}
            assert len(ids) == n

    def test_empty_input_gives_empty_tiers(self):
        seg = segment_market([])
        assert seg.premiumTier == [] and seg.midTier == [] and seg.valueTier == []


# =============================================================================
# Clustering
# =============================================================================


class TestRateClustering:
    """Tests for identify_rate_clusters and find_rate_cluster."""

    def test_two_clusters(self):
        clusters = identify_rate_clusters([100.0, 105.0, 108.0, 140.0, 145.0])

        assert [c.memberCount for c in clusters] == [3, 2]
        assert clusters[0].centerRate == pytest.approx(104.333, abs=1e-3)
        assert clusters[1].centerRate == pytest.approx(142.5)

    def test_input_order_does_not_matter(self):
        a = identify_rate_clusters([100.0, 105.0, 108.0, 140.0, 145.0])
        b = identify_rate_clusters([145.0, 100.0, 140.0, 108.0, 105.0])

        assert [(c.centerRate, c.memberCount) for c in a] == [(c.centerRate, c.memberCount) for c in b]

    def test_singletons_are_dropped(self):
        clusters = identify_rate_clusters([100.0, 200.0, 300.0])
        assert clusters == []

    def test_gap_equal_to_threshold_stays_in_cluster(self):
        clusters = identify_rate_clusters([100.0, 120.0], threshold=20.0)
        assert len(clusters) == 1

    def test_find_cluster_by_member_range(self):
        clusters = identify_rate_clusters([100.0, 105.0, 108.0, 140.0, 145.0])

        assert find_rate_cluster(106.0, clusters).memberCount == 3
        assert find_rate_cluster(120.0, clusters) is None


# =============================================================================
# Gap Detection
# =============================================================================


class TestGapDetection:
    """Tests for detect_gaps, GapPolicy and summarize_gap_direction."""

    def test_gap_directions(self):
        observations = [
            make_observation(100.0, competitor_name="Budget Inn"),
            make_observation(144.0, competitor_name="Grand Hotel"),
            make_observation(126.0, competitor_name="City Suites"),
        ]

        gaps = detect_gaps(120.0, observations)

        assert gaps[0].percentageDifference == pytest.approx(20.0)
        assert gaps[0].recommendation == GapRecommendation.DECREASE
        assert gaps[1].percentageDifference == pytest.approx(-16.667, abs=1e-3)
        assert gaps[1].recommendation == GapRecommendation.INCREASE
        assert gaps[2].percentageDifference == pytest.approx(-4.762, abs=1e-3)
        assert gaps[2].recommendation == GapRecommendation.MAINTAIN
        assert [g.competitorName for g in gaps] == ["Budget Inn", "Grand Hotel", "City Suites"]

    def test_zero_priced_competitor_is_maintain(self):
        gaps = detect_gaps(120.0, [make_observation(0.0)])

        assert gaps[0].percentageDifference == 0.0
        assert gaps[0].recommendation == GapRecommendation.MAINTAIN

    def test_custom_policy(self):
        policy = GapPolicy(decrease_above_pct=5.0, increase_below_pct=-5.0)

        gaps = detect_gaps(110.0, [make_observation(100.0)], policy)

        assert gaps[0].recommendation == GapRecommendation.DECREASE

    def test_policy_from_settings(self, settings):
        tuned = settings.model_copy(update={
            "gap_decrease_threshold_pct": 8.0,
            "gap_increase_threshold_pct": -12.0,
        })

        policy = GapPolicy.from_settings(tuned)

        assert policy == GapPolicy(decrease_above_pct=8.0, increase_below_pct=-12.0)

    def test_summary_requires_strict_majority(self):
        observations = make_observations([100.0, 100.0, 200.0, 200.0])

        gaps = detect_gaps(150.0, observations)

        assert summarize_gap_direction(gaps) == GapRecommendation.MAINTAIN
        assert summarize_gap_direction(gaps[:3]) == GapRecommendation.DECREASE
        assert summarize_gap_direction([]) == GapRecommendation.MAINTAIN


# =============================================================================
# Commentary
# =============================================================================


class TestMarketCommentary:
    """Tests for generate_market_recommendations and its helpers."""

    def test_insufficient_data_without_current_rate(self):
        lines = generate_market_recommendations(None, 150.0, make_observations([150.0]))
        assert lines == [INSUFFICIENT_DATA_MESSAGE]

    def test_insufficient_data_without_observations(self):
        assert generate_market_recommendations(150.0, 150.0, []) == [INSUFFICIENT_DATA_MESSAGE]

    def test_competitive_aligned_stable_market(self):
        observations = make_observations([145.0, 150.0, 155.0, 160.0])

        lines = generate_market_recommendations(152.0, 152.5, observations)

        assert lines[0].startswith("Well-positioned in the competitive middle tier")
        assert "Rate is well-aligned with competitive set - maintain current positioning" in lines
        assert "Stable market conditions - good environment for strategic positioning" in lines
        assert "High competitor availability indicates competitive market conditions" in lines

    def test_top_decile_premium_and_median_gap(self):
        observations = make_observations([100.0, 105.0, 110.0, 115.0])

        lines = generate_market_recommendations(200.0, 107.5, observations)

        assert lines[0].startswith("You are positioned in the top 10% of the market")
        assert "Rate is $92 above market median - consider market positioning strategy" in lines
        assert "Rate appears high relative to most competitors - consider competitive adjustment" in lines

    def test_gap_at_exactly_threshold_is_not_significant(self):
        observations = [
            make_observation(150.0, competitor_name="Harbor View"),
            make_observation(200.0, competitor_name="Grand Hotel"),
        ]

        lines = gap_commentary(detect_gaps(150.0, observations))

        assert lines == []

    def test_significant_gap_above_threshold(self):
        observations = [make_observation(100.0, competitor_name="Budget Inn")]

        lines = gap_commentary(detect_gaps(130.0, observations))

        assert "Significant rate gap with Budget Inn (30% higher)" in lines

    def test_cluster_alignment_and_low_availability(self):
        observations = [
            make_observation(100.0, competitor_id="a", available=False),
            make_observation(105.0, competitor_id="b"),
            make_observation(108.0, competitor_id="c", available=False),
            make_observation(140.0, competitor_id="d"),
            make_observation(145.0, competitor_id="e", available=False),
        ]

        lines = market_condition_commentary(106.0, 119.6, observations)

        assert "Rate aligns with 3-property cluster around $104" in lines
        assert any(line.startswith("Limited competitor availability") for line in lines)

    @pytest.mark.parametrize("current_rate, expected", [
        (200.0, ["Rate is above the premium-tier average ($180) "
                 "- confirm the product supports top-of-market pricing"]),
        (95.0, ["Rate is below the value-tier average ($110) "
                "- room to move up without leaving the value segment"]),
        (150.0, []),
    ])
    def test_tier_commentary(self, current_rate, expected):
        observations = make_observations([100.0 + 10.0 * i for i in range(10)])

        assert tier_commentary(current_rate, segment_market(observations)) == expected

    def test_empty_value_tier_is_skipped(self):
        seg = segment_market(make_observations([150.0, 160.0]))

        assert tier_commentary(10.0, seg) == []

    def test_tier_line_follows_positioning(self):
        observations = make_observations([100.0 + 10.0 * i for i in range(10)])

        lines = generate_market_recommendations(200.0, 145.0, observations)

        assert lines[0].startswith("You are positioned in the top 10% of the market")
        assert lines[2].startswith("Rate is above the premium-tier average ($180)")
