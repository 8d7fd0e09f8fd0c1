"""CareScore exports."""

from .engine import ScoreItem, ScoreResult, compute_score, missing_items, score_band

__all__ = [
	"ScoreItem",
	"ScoreResult",
	"compute_score",
	"missing_items",
	"score_band",
]
