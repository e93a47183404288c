"""
Shared Rubric Configuration
============================
Single source of truth for the notebook rubric and the grader name table.
Used by the grading engine, the grading routes and the listings.

Drop a JSON file at RUBRIC_FILE (same shape as RUBRIC_DATA) to replace the
default rubric without touching code.
"""
import json
import logging
import os
from types import MappingProxyType

from backend.config import RUBRIC_FILE
from backend.errors import RubricConfigError
from backend.rubric import RubricDefinition

logger = logging.getLogger(__name__)

# Minimum percentage (inclusive) for a completion certificate
DEFAULT_CERTIFICATE_THRESHOLD = 50

RUBRIC_DATA = [
    {
        "category": "Application of Concepts learnt",
        "criteria": [
            {"score": 1, "label": "0-50%", "description": "Failed to apply the concepts learnt"},
            {"score": 2, "label": "50-75%", "description": "Fairly applied the concepts learnt"},
            {"score": 3, "label": "75-100", "description": "Used the concepts to a satisfactory levels"},
        ],
    },
    {
        "category": "Analysis",
        "criteria": [
            {"score": 1, "label": "0-50%", "description": "Choice of analysis is overly simplistic or incomplete"},
            {"score": 2, "label": "50-75%", "description": "Analysis appropriate"},
            {"score": 3, "label": "75-100", "description": "Analysis appropriate, complete, advanced, and informative"},
        ],
    },
    {
        "category": "Results",
        "criteria": [
            {"score": 1, "label": "0-50%", "description": "Conclusions are missing, incorrect, or not based on analysis. Inappropriate choice of plots; poorly labeled plots; plots missing"},
            {"score": 2, "label": "50-75%", "description": "Conclusions relevant, but partially correct or partially complete. Plots convey information but lack context for interpretation"},
            {"score": 3, "label": "75-100", "description": "Relevant conclusions explicitly tied to analysis and to context. Plots convey information correctly with adequate and appropriate reference information"},
        ],
    },
    {
        "category": "Readability",
        "criteria": [
            {"score": 1, "label": "0-50%", "description": "Code is messy and poorly organized; unused or irrelevant code distracts when reading code. Variables and functions names do not help to understand code."},
            {"score": 2, "label": "50-75%", "description": "Code is reasonably well organized. There is little unused or irrelevant code, or this code has been moved out of the main project files. Variable and function names generally meaningful and helpful for understanding."},
            {"score": 3, "label": "75-100", "description": "Code very well organized. No irrelevant or distracting code. Variable and function names have clear relationship to their purpose in the code. Code is easy to read and understand."},
        ],
    },
    {
        "category": "Presentation",
        "criteria": [
            {"score": 1, "label": "0-50%", "description": "Verbal presentation is illogical, incorrect, or incoherent. Visual presentation is cluttered, disjoint, or illegible. Verbal and visual presentation unrelated"},
            {"score": 2, "label": "50-75%", "description": "Verbal presentation partially correct but incomplete or unconvincing. Visual presentation is readable and clear. Verbal and visual presentation related"},
            {"score": 3, "label": "75-100", "description": "Verbal presentation is correct, complete, and convincing. Visual presentation is appealing, informative, and crisp. Verbal and visual presentation clearly related"},
        ],
    },
    {
        "category": "Writing",
        "criteria": [
            {"score": 1, "label": "0-50%", "description": "Explanation is illogical, incorrect, or incoherent"},
            {"score": 2, "label": "50-75%", "description": "Explanation is correct, complete, and convincing"},
            {"score": 3, "label": "75-100", "description": "Explanation is correct, complete, convincing, and elegant"},
        ],
    },
]

# Grader UIDs -> display names. Presentation only; unknown ids show raw.
GRADER_NAMES = MappingProxyType({
    "I2PqkG9SGHfmHNQyqYPZX39Fwx93": "Narusha Isaacs",
    "rIlyMcacgpN30XuuodWNQnGi7HP2": "Najam Hasan",
    "8n4OeTdv1uZUr4kOBcLUwKG81Dz2": "Daniel Egbo",
    "ftW6ClmQoyV1TrTjY60TG3ZRvlz2": "Sally McFarlane",
    "TzxMOwGFOVfq1YqVl5olxUf6tCV2": "Aleksey Diachenko",
    "7pjepHNrM8VGVDogr8NNjDLq2Rg2": "Priya Hasan",
    "N7P4b4XrLWVSs4DB2xKUmZdCeen2": "Nikita Rawat",
})


def default_rubric() -> RubricDefinition:
    return RubricDefinition.from_list(RUBRIC_DATA)


def load_rubric(path: str = None) -> RubricDefinition:
    """
    Load the rubric, preferring the JSON override file when it exists.

    A malformed override raises RubricConfigError.
    """
    path = path or RUBRIC_FILE
    if not path or not os.path.exists(path):
        return default_rubric()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise RubricConfigError(f"Could not read rubric file {path}: {e}") from e

    rubric = RubricDefinition.from_list(raw)
    logger.info("Loaded rubric with %d categories from %s", len(rubric), path)
    return rubric


def get_grader_name(uid, names=GRADER_NAMES) -> str:
    """Display name for a grader id; unknown ids fall back to the id itself."""
    if not uid:
        return "Not available"
    return names.get(uid, uid)
