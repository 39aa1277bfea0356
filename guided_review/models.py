"""Pydantic models for type safety."""

import uuid
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from guided_review.state import ConversationState


class WireModel(BaseModel):
    """Model exchanged with the LLM or the controller layer (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Message(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class QuestionOption(WireModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    label: str
    text: str


class EmbeddedQuestion(WireModel):
    """Practice question the model embedded in its reply."""
    id: str = Field(default_factory=lambda: f"q_{uuid.uuid4().hex[:12]}")
    text: str
    options: List[QuestionOption] = Field(min_length=1)
    correct_answer: str
    explanation: str = ""

    @field_validator("explanation", mode="before")
    @classmethod
    def _blank_explanation(cls, value: Any) -> Any:
        return "" if value is None else value

    @model_validator(mode="after")
    def _answer_matches_one_option(self) -> "EmbeddedQuestion":
        labels = [option.label for option in self.options]
        if len(set(labels)) != len(labels):
            raise ValueError(f"duplicate option labels: {labels}")
        if self.correct_answer not in labels:
            raise ValueError(
                f"correctAnswer {self.correct_answer!r} is not one of {labels}"
            )
        return self


class ChartAnnotation(WireModel):
    """Highlighted point on a function chart (vertex, intercept)."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    label: Optional[str] = None
    color: Optional[str] = None


class PolygonConfig(WireModel):
    """Geometric figure in a 0-100 viewBox; vertex and label records are passed through."""
    model_config = ConfigDict(frozen=True)

    points: List[Dict[str, Any]] = []
    extra_lines: List[Dict[str, Any]] = []
    angle_labels: List[Dict[str, Any]] = []
    side_labels: List[Dict[str, Any]] = []
    stroke_color: str = "#2563eb"
    fill_color: str = "#dbeafe"
    width: int = 300
    height: int = 300


class RectangleConfig(WireModel):
    """Grid of cells for fraction teaching; shaded cells are row-major indices."""
    model_config = ConfigDict(frozen=True)

    rows: int = 1
    cols: int = 1
    shaded_cells: List[int] = []
    shaded_color: str = "#c7d2fe"
    empty_color: str = "#fff"
    outline_color: str = "#94a3b8"
    caption: Optional[str] = None


RenderKind = Literal[
    "line", "bar", "histogram", "scatter", "pie", "polygon", "fraction-rectangle"
]


class ChartSeries(WireModel):
    """Renderer-ready chart synthesized from a symbolic request."""
    model_config = ConfigDict(frozen=True)

    kind: RenderKind
    source_kind: str
    title: str
    data: List[Dict[str, Any]] = []
    x_label: Optional[str] = None
    y_label: Optional[str] = None
    x_domain: Optional[Tuple[float, float]] = None
    y_domain: Optional[Tuple[float, float]] = None
    show_grid: bool = True
    data_keys: Optional[List[str]] = None
    annotations: List[ChartAnnotation] = []
    polygon: Optional[PolygonConfig] = None
    rectangle: Optional[RectangleConfig] = None


class TurnResult(WireModel):
    """Structured reply assembled from one raw model turn."""
    response: str
    embedded_question: Optional[EmbeddedQuestion] = None
    chart: Optional[ChartSeries] = None
    concepts: List[str] = []


class TutorReply(TurnResult):
    suggested_follow_up: Optional[str] = None


class SessionSummary(WireModel):
    """End-of-session recap (structured completion)."""
    summary: str
    concepts_mastered: List[str] = []
    concepts_needing_work: List[str] = []
    recommended_next_steps: List[str] = []
    overall_progress: str = ""


class PreviousSessions(WireModel):
    """What the caller knows about earlier sessions on this topic."""
    has_history: bool = False
    total_sessions: int = 0
    last_session_accuracy: Optional[float] = None
    concepts_covered: List[str] = []
    concepts_due_for_review: List[str] = []
    recommended_starting_point: Optional[str] = None


class SessionContext(WireModel):
    """Everything the prompt layer needs for one guided turn."""
    subject: str
    topic: str
    student_level: int = Field(default=5, ge=1, le=10)
    learning_style: Literal["visual", "verbal", "procedural", "conceptual", "mixed"] = "mixed"
    weak_areas: List[str] = []
    mastery_level: float = 0.0
    history: List[Message] = []
    questions_attempted: int = 0
    questions_correct: int = 0
    previous_sessions: Optional[PreviousSessions] = None
    state: ConversationState = Field(default_factory=ConversationState)
