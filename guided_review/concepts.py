"""Tag replies with the curriculum concepts they touch."""

import re
from typing import List, Pattern, Tuple

MAX_CONCEPTS = 8

TRIANGLE_CONCEPTS = (
    "equilateral triangle",
    "isosceles triangle",
    "scalene triangle",
    "right triangle",
    "acute triangle",
    "obtuse triangle",
    "classification by sides",
    "classification by angles",
    "triangle properties",
    "pythagorean theorem",
    "triangle angles sum",
    "angle relationships",
    "congruent triangles",
    "similar triangles",
    "triangle inequality",
    "hypotenuse",
    "right angle",
    "acute angle",
    "obtuse angle",
)

ALGEBRA_CONCEPTS = (
    "linear equation",
    "quadratic equation",
    "slope-intercept form",
    "point-slope form",
    "standard form",
    "vertex form",
    "factoring",
    "completing the square",
    "quadratic formula",
    "systems of equations",
    "substitution method",
    "elimination method",
    "graphing linear equations",
    "slope",
    "y-intercept",
    "x-intercept",
    "parabola",
    "vertex",
    "axis of symmetry",
    "roots",
    "solutions",
)

STATISTICS_CONCEPTS = (
    "mean",
    "median",
    "mode",
    "range",
    "standard deviation",
    "scatter plot",
    "line of best fit",
    "correlation",
    "probability",
    "ratio",
    "proportion",
    "percentage",
    "percent change",
)

READING_CONCEPTS = (
    "main idea",
    "central theme",
    "author purpose",
    "author tone",
    "inference",
    "textual evidence",
    "vocabulary in context",
    "passage structure",
    "argument analysis",
    "point of view",
)

WRITING_CONCEPTS = (
    "subject-verb agreement",
    "pronoun reference",
    "comma usage",
    "semicolon usage",
    "sentence structure",
    "parallel structure",
    "modifier placement",
    "verb tense",
    "transitions",
    "conciseness",
)

CONCEPT_PHRASES: Tuple[str, ...] = (
    TRIANGLE_CONCEPTS
    + ALGEBRA_CONCEPTS
    + STATISTICS_CONCEPTS
    + READING_CONCEPTS
    + WRITING_CONCEPTS
)

# Paraphrases the plain phrase scan misses ("three equal sides" -> equilateral).
CONCEPT_PATTERNS: Tuple[Tuple[Pattern[str], str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), concept)
    for pattern, concept in (
        (r"equilateral", "equilateral triangle"),
        (r"isosceles", "isosceles triangle"),
        (r"scalene", "scalene triangle"),
        (r"right\s+(triangle|angle)", "right triangle"),
        (r"acute\s+(triangle|angle)", "acute angle"),
        (r"obtuse\s+(triangle|angle)", "obtuse angle"),
        (r"pythagorean", "pythagorean theorem"),
        (r"90\s*°|90\s*degrees|ninety degrees", "right angle"),
        (r"three equal sides|all sides equal", "equilateral triangle"),
        (r"two equal sides|two sides equal", "isosceles triangle"),
        (r"all sides different|no equal sides", "scalene triangle"),
        (r"classif(y|ied|ication)\s+.*?\s*by\s+sides", "classification by sides"),
        (r"classif(y|ied|ication)\s+.*?\s*by\s+angles", "classification by angles"),
    )
)


def extract_concepts(text: str, primary_topic: str, limit: int = MAX_CONCEPTS) -> List[str]:
    """Return the taxonomy concepts ``text`` mentions, topic first, at most ``limit``.

    Phrase matching is plain case-insensitive containment, so "mode" also
    fires inside "model"; the taxonomy is curated with that in mind.
    """
    lowered = text.lower()
    concepts: List[str] = []

    for phrase in CONCEPT_PHRASES:
        if phrase in lowered and phrase not in concepts:
            concepts.append(phrase)

    for pattern, concept in CONCEPT_PATTERNS:
        if concept not in concepts and pattern.search(text):
            concepts.append(concept)

    if primary_topic and primary_topic not in concepts and len(concepts) < limit:
        concepts.insert(0, primary_topic)

    return concepts[:limit]
