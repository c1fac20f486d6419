"""
Semantic scoring of lexicon entries.

Key components:
- SemanticScorer: weighted multi-signal scorer used for approximate lookup
- MatchScore: per-signal breakdown of one score
- categories: domain keyword tables and part-of-speech inference
"""
from .semantic_scorer import SemanticScorer, MatchScore, ScoreWeights
from .categories import CATEGORY_KEYWORDS, infer_category, infer_part_of_speech

__all__ = [
    "SemanticScorer",
    "MatchScore",
    "ScoreWeights",
    "CATEGORY_KEYWORDS",
    "infer_category",
    "infer_part_of_speech",
]
