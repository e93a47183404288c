"""
Rubric Grading Engine
=====================
Turns a grader's per-category rubric selections into a percentage grade,
a certificate-eligibility flag and compiled feedback text.

Everything in here is pure: no I/O, no hidden state. Callers recompute the
grade after every selection change and persist the snapshot through the
submission store once is_complete() passes.

    engine = GradingEngine(load_rubric())
    selection = engine.record_selection({}, "Analysis", 3)
    result = engine.compute_grade(selection)      # GradeResult(percentage=17, eligible=False)
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Mapping

from backend.errors import IncompleteRubricError
from backend.rubric import RubricDefinition
from backend.rubric_config import DEFAULT_CERTIFICATE_THRESHOLD

FEEDBACK_HEADER = "Rubric Feedback:"


@dataclass(frozen=True)
class GradeResult:
    percentage: int
    eligible: bool

    def to_dict(self):
        return {"grade": self.percentage, "certificateEligible": self.eligible}


def round_half_up(value) -> int:
    """Round to the nearest integer, halves away from zero (33.5 -> 34)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# =============================================================================
# ENGINE
# =============================================================================

class GradingEngine:
    """Grade computation over one immutable rubric."""

    def __init__(self, rubric: RubricDefinition, threshold: int = DEFAULT_CERTIFICATE_THRESHOLD):
        self.rubric = rubric
        self.threshold = threshold

    @staticmethod
    def record_selection(selection: Mapping[str, int], category: str, score: int) -> Dict[str, int]:
        """
        Return a copy of `selection` with `category` set to `score`.

        Unknown categories are stored as-is; only scores drawn from the
        rubric are expected here.
        """
        updated = dict(selection or {})
        updated[category] = score
        return updated

    def compute_grade(self, selection: Mapping[str, int]) -> GradeResult:
        """Percentage grade and eligibility for the current selection."""
        if not selection:
            return GradeResult(percentage=0, eligible=self.is_eligible(0))

        total = sum(selection.values())
        denominator = len(self.rubric) * self.rubric.max_per_category
        percentage = round_half_up(Decimal(total) / Decimal(denominator) * 100)
        return GradeResult(percentage=percentage, eligible=self.is_eligible(percentage))

    def is_eligible(self, percentage) -> bool:
        return percentage >= self.threshold

    def missing_categories(self, selection: Mapping[str, int]) -> List[str]:
        selection = selection or {}
        return [name for name in self.rubric.category_names if name not in selection]

    def is_complete(self, selection: Mapping[str, int]) -> bool:
        """True once every rubric category has a score; extra keys are ignored."""
        return not self.missing_categories(selection)

    def ensure_complete(self, selection: Mapping[str, int]):
        """Raise IncompleteRubricError naming the unscored categories."""
        missing = self.missing_categories(selection)
        if missing:
            total = len(self.rubric)
            raise IncompleteRubricError(total=total, scored=total - len(missing), missing=missing)

    def compile_feedback(self, selection: Mapping[str, int]) -> str:
        """One line per scored category, in rubric order."""
        selection = selection or {}
        lines = [FEEDBACK_HEADER]
        for category in self.rubric:
            score = selection.get(category.name)
            if score is None:
                continue
            criterion = category.criterion_for(score)
            if criterion is None:
                continue
            lines.append(f"- {category.name} ({criterion.label}): {criterion.description}")
        return "\n".join(lines) + "\n"

    def append_feedback(self, existing: str, selection: Mapping[str, int]) -> str:
        """Compile rubric feedback and append it below any freeform text."""
        existing = existing or ""
        separator = "\n\n" if existing else ""
        return f"{existing}{separator}{self.compile_feedback(selection)}"

    def build_grade_update(self, selection: Mapping[str, int], feedback: str, grader_id: str) -> dict:
        """
        Snapshot written to a submission when a grader commits.

        Raises IncompleteRubricError before anything is built, so an
        incomplete selection never reaches the store.
        """
        self.ensure_complete(selection)
        result = self.compute_grade(selection)
        return {
            "grade": result.percentage,
            "rubricScores": dict(selection),
            "feedback": (feedback or "").strip(),
            "status": "graded",
            "gradedAt": datetime.now(timezone.utc).isoformat(),
            "gradedBy": grader_id,
            "certificateEligible": result.eligible,
        }
