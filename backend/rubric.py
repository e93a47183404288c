"""
Rubric Values
=============
Immutable rubric types. A RubricDefinition is built once at startup
(see rubric_config.load_rubric) and handed to the grading engine; it is
never mutated at runtime.
"""
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from backend.errors import RubricConfigError


@dataclass(frozen=True)
class Criterion:
    score: int
    label: str
    description: str


@dataclass(frozen=True)
class Category:
    name: str
    criteria: Tuple[Criterion, ...]

    @property
    def max_score(self) -> int:
        return max(c.score for c in self.criteria)

    def criterion_for(self, score) -> Optional[Criterion]:
        """Return the criterion carrying `score`, or None."""
        for criterion in self.criteria:
            if criterion.score == score:
                return criterion
        return None


@dataclass(frozen=True)
class RubricDefinition:
    """Ordered rubric categories, all with the same shape."""

    categories: Tuple[Category, ...]

    def __post_init__(self):
        validate_rubric(self.categories)

    def __len__(self):
        return len(self.categories)

    def __iter__(self):
        return iter(self.categories)

    @property
    def category_names(self) -> List[str]:
        return [c.name for c in self.categories]

    @property
    def max_per_category(self) -> int:
        # Every category shares the same maximum, so the first one is enough
        return self.categories[0].max_score

    def get(self, name: str) -> Optional[Category]:
        for category in self.categories:
            if category.name == name:
                return category
        return None

    def to_list(self) -> List[dict]:
        """Serialize back to the JSON shape accepted by from_list."""
        return [
            {
                "category": category.name,
                "criteria": [
                    {"score": c.score, "label": c.label, "description": c.description}
                    for c in category.criteria
                ],
            }
            for category in self.categories
        ]

    @classmethod
    def from_list(cls, raw: Sequence[Mapping[str, Any]]) -> "RubricDefinition":
        """Build a rubric from a list of {category, criteria: [...]} mappings."""
        if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
            raise RubricConfigError("Rubric must be a list of categories")

        categories = []
        for idx, item in enumerate(raw, start=1):
            if not isinstance(item, Mapping) or "category" not in item or "criteria" not in item:
                raise RubricConfigError(
                    f"Rubric category #{idx} is missing 'category' or 'criteria'"
                )
            try:
                criteria = [
                    Criterion(
                        score=int(c["score"]),
                        label=str(c.get("label", "")),
                        description=str(c.get("description", "")),
                    )
                    for c in item["criteria"]
                ]
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise RubricConfigError(
                    f"Invalid criteria in category '{item['category']}': {e}"
                ) from e
            categories.append(Category(name=str(item["category"]), criteria=tuple(criteria)))

        return cls(categories=tuple(categories))


def validate_rubric(categories: Sequence[Category]):
    """Raise RubricConfigError unless all categories share one shape."""
    if not categories:
        raise RubricConfigError("Rubric must include at least one category")

    names = [c.name for c in categories]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise RubricConfigError(f"Duplicate rubric categories: {', '.join(duplicates)}")

    first = categories[0]
    if not first.criteria:
        raise RubricConfigError(f"Category '{first.name}' has no criteria")

    for category in categories[1:]:
        if len(category.criteria) != len(first.criteria):
            raise RubricConfigError(
                f"Category '{category.name}' has {len(category.criteria)} criteria, "
                f"expected {len(first.criteria)}"
            )
        if category.max_score != first.max_score:
            raise RubricConfigError(
                f"Category '{category.name}' has max score {category.max_score}, "
                f"expected {first.max_score}"
            )

    if first.max_score <= 0:
        raise RubricConfigError("Rubric max score must be positive")
