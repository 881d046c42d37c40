"""
Recommendation scoring engine: turns preferences, catalog products and
interaction history into bounded, explained recommendation scores.

Modules
-------
preference_matcher     : MatchComponents + match_score(): weighted
                         category/brand/price/style match, pure.
interaction_classifier : weight/score tables, positive/negative/neutral
                         classification, recency.
product_filter         : ProductFilters matching and helper predicates.
confidence             : confidence tiers, quality thresholds, reason text.
stats                  : interaction and recommendation aggregates.
ranker                 : ScoredCandidate + rank_candidates() +
                         build_recommendations().
reporter               : write_recommendation_json/csv() + write_stats_json().
"""
