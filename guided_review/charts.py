"""Turn symbolic chart requests into renderer-ready series.

Each chart kind the model may ask for is one request model below; the
allow-list is derived from that closed set, so adding a kind means adding
a request class with its own ``to_series``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Annotated, Any, Callable, Dict, FrozenSet, List, Literal, Optional, Tuple, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from guided_review.models import ChartAnnotation, ChartSeries, PolygonConfig, RectangleConfig

log = logging.getLogger(__name__)

DEFAULT_X_DOMAIN: Tuple[float, float] = (-5.0, 5.0)
MIN_PADDING = 2.0
PADDING_RATIO = 0.1

HIGHLIGHT_COLOR = "#ef4444"
SECONDARY_COLOR = "#2563eb"


def _padded_range(low: float, high: float) -> Tuple[float, float]:
    """Widen [low, high] by 10% of the span (at least 2 units) and round outwards."""
    pad = max(abs(high - low) * PADDING_RATIO, MIN_PADDING)
    return float(math.floor(low - pad)), float(math.ceil(high + pad))


def _sample(fn: Callable[[float], float], x_min: float, x_max: float, step: float) -> List[Dict[str, float]]:
    count = int(math.floor((x_max - x_min) / step + 1e-9))
    points = []
    for i in range(count + 1):
        x = min(max(round(x_min + i * step, 6), x_min), x_max)
        points.append({"x": x, "y": fn(x)})
    if points[-1]["x"] < x_max:
        points.append({"x": x_max, "y": fn(x_max)})
    return points


def _fmt(value: float) -> str:
    return f"{value:g}"


class _ChartRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
        frozen=True,
    )

    title: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _missing_means_default(cls, data: Any) -> Any:
        # The model writes null for "use the default"; drop those keys one level deep.
        if not isinstance(data, Mapping):
            return data
        cleaned = {}
        for key, value in data.items():
            if value is None:
                continue
            if isinstance(value, Mapping):
                value = {k: v for k, v in value.items() if v is not None}
            cleaned[key] = value
        return cleaned

    def to_series(self) -> ChartSeries:
        raise NotImplementedError


class _FunctionRequest(_ChartRequest):
    x_domain: Tuple[float, float] = DEFAULT_X_DOMAIN

    @field_validator("x_domain")
    @classmethod
    def _ordered(cls, value: Tuple[float, float]) -> Tuple[float, float]:
        if value[0] >= value[1]:
            raise ValueError(f"xDomain must be increasing, got {value}")
        return value


class LinearRequest(_FunctionRequest):
    kind: Literal["linear"]
    m: float = 1.0
    b: float = 0.0

    def to_series(self) -> ChartSeries:
        x_min, x_max = self.x_domain
        f = lambda x: self.m * x + self.b  # noqa: E731
        edges = (f(x_min), f(x_max))
        return ChartSeries(
            kind="line",
            source_kind=self.kind,
            title=self.title or f"Graph of y = {_fmt(self.m)}x + {_fmt(self.b)}",
            data=_sample(f, x_min, x_max, max(0.5, (x_max - x_min) / 20)),
            x_label="x",
            y_label="y",
            x_domain=self.x_domain,
            y_domain=_padded_range(min(edges), max(edges)),
            data_keys=["y"],
            annotations=[
                ChartAnnotation(x=0.0, y=self.b, label=f"(0, {_fmt(self.b)})", color=HIGHLIGHT_COLOR),
            ],
        )


class QuadraticRequest(_FunctionRequest):
    kind: Literal["quadratic"]
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0

    @field_validator("a")
    @classmethod
    def _is_quadratic(cls, value: float) -> float:
        if value == 0:
            raise ValueError("a = 0 has no vertex")
        return value

    def to_series(self) -> ChartSeries:
        a, b, c = self.a, self.b, self.c
        x_min, x_max = self.x_domain
        f = lambda x: a * x * x + b * x + c  # noqa: E731

        vertex_x = -b / (2 * a)
        vertex_y = c - (b * b) / (4 * a)

        low = min(f(x_min), f(x_max))
        high = max(f(x_min), f(x_max))
        if x_min <= vertex_x <= x_max:
            low = min(low, vertex_y)
            high = max(high, vertex_y)

        direction = "upward" if a > 0 else "downward"
        return ChartSeries(
            kind="line",
            source_kind=self.kind,
            title=self.title or f"Quadratic Function (opens {direction})",
            data=_sample(f, x_min, x_max, max(0.2, (x_max - x_min) / 50)),
            x_label="x",
            y_label="y",
            x_domain=self.x_domain,
            y_domain=_padded_range(low, high),
            data_keys=["y"],
            annotations=[
                ChartAnnotation(
                    x=vertex_x,
                    y=vertex_y,
                    label=f"Vertex ({vertex_x:.1f}, {vertex_y:.1f})",
                    color=HIGHLIGHT_COLOR,
                ),
                ChartAnnotation(x=0.0, y=c, label=f"(0, {_fmt(c)})", color=SECONDARY_COLOR),
            ],
        )


# Absolute value and exponential charts teach shape, not readouts:
# fixed windows, no fitting.
class AbsoluteRequest(_ChartRequest):
    kind: Literal["absolute"]
    a: float = 1.0
    h: float = 0.0
    k: float = 0.0

    def to_series(self) -> ChartSeries:
        f = lambda x: self.a * abs(x - self.h) + self.k  # noqa: E731
        return ChartSeries(
            kind="line",
            source_kind=self.kind,
            title=self.title or "Absolute Value Function",
            data=_sample(f, -5.0, 5.0, 0.5),
            x_label="x",
            y_label="y",
            x_domain=(-6.0, 6.0),
            y_domain=(-2.0, 10.0),
            data_keys=["y"],
        )


class ExponentialRequest(_ChartRequest):
    kind: Literal["exponential"]
    base: float = Field(default=2.0, gt=0)

    def to_series(self) -> ChartSeries:
        f = lambda x: self.base ** x  # noqa: E731
        return ChartSeries(
            kind="line",
            source_kind=self.kind,
            title=self.title or f"Exponential Function: y = {_fmt(self.base)}^x",
            data=_sample(f, -2.0, 4.0, 0.5),
            x_label="x",
            y_label="y",
            x_domain=(-3.0, 4.0),
            y_domain=(0.0, 20.0),
            data_keys=["y"],
        )


class _DataRequest(_ChartRequest):
    data: List[Dict[str, Any]] = []
    x_label: Optional[str] = None
    y_label: Optional[str] = None


class BarRequest(_DataRequest):
    kind: Literal["bar"]
    data_keys: Optional[List[str]] = None

    def to_series(self) -> ChartSeries:
        return ChartSeries(
            kind="bar",
            source_kind=self.kind,
            title=self.title or "Bar Chart",
            data=self.data,
            x_label=self.x_label or "Category",
            y_label=self.y_label or "Value",
            data_keys=self.data_keys or ["value"],
        )


class HistogramRequest(_DataRequest):
    kind: Literal["histogram"]

    def to_series(self) -> ChartSeries:
        return ChartSeries(
            kind="histogram",
            source_kind=self.kind,
            title=self.title or "Histogram",
            data=self.data,
            x_label=self.x_label or "Value",
            y_label=self.y_label or "Frequency",
        )


class ScatterRequest(_DataRequest):
    kind: Literal["scatter"]

    def to_series(self) -> ChartSeries:
        return ChartSeries(
            kind="scatter",
            source_kind=self.kind,
            title=self.title or "Scatter Plot",
            data=self.data,
            x_label=self.x_label or "x",
            y_label=self.y_label or "y",
        )


class PieRequest(_ChartRequest):
    kind: Literal["pie"]
    data: List[Dict[str, Any]] = []

    def to_series(self) -> ChartSeries:
        return ChartSeries(
            kind="pie",
            source_kind=self.kind,
            title=self.title or "Pie Chart",
            data=self.data,
            show_grid=False,
        )


class NumberLineRequest(_ChartRequest):
    """Points on a line for statistics (mean, median, mode).

    Plain points only: there is no inequality shading and no open or closed
    circles. The tutoring prompt is written around that limitation.
    """
    kind: Literal["number-line"]
    values: List[float] = []

    def to_series(self) -> ChartSeries:
        return ChartSeries(
            kind="scatter",
            source_kind=self.kind,
            title=self.title or "Number Line",
            data=[{"x": value, "y": 0} for value in self.values],
            x_label="Value",
            y_label="",
            y_domain=(-1.0, 1.0),
        )


class PolygonRequest(_ChartRequest):
    kind: Literal["polygon"]
    polygon_config: PolygonConfig = Field(default_factory=PolygonConfig)

    def to_series(self) -> ChartSeries:
        return ChartSeries(
            kind="polygon",
            source_kind=self.kind,
            title=self.title or "Geometric Figure",
            show_grid=False,
            polygon=self.polygon_config,
        )


class FractionRectangleRequest(_ChartRequest):
    kind: Literal["fraction-rectangle"]
    rectangle_config: RectangleConfig = Field(default_factory=RectangleConfig)

    def to_series(self) -> ChartSeries:
        return ChartSeries(
            kind="fraction-rectangle",
            source_kind=self.kind,
            title=self.title or "Fraction",
            show_grid=False,
            rectangle=self.rectangle_config,
        )


ChartRequest = Annotated[
    Union[
        QuadraticRequest,
        LinearRequest,
        AbsoluteRequest,
        ExponentialRequest,
        BarRequest,
        HistogramRequest,
        ScatterRequest,
        NumberLineRequest,
        PieRequest,
        PolygonRequest,
        FractionRectangleRequest,
    ],
    Field(discriminator="kind"),
]

_REQUEST_ADAPTER: TypeAdapter[Any] = TypeAdapter(ChartRequest)

CHART_KINDS: FrozenSet[str] = frozenset(
    get_args(variant.model_fields["kind"].annotation)[0]
    for variant in get_args(get_args(ChartRequest)[0])
)


def synthesize(request: Any) -> Optional[ChartSeries]:
    """Build a ChartSeries from a parsed chart block, or None.

    Unknown kinds are rejected outright; malformed or internally inconsistent
    requests yield None rather than a partial series.
    """
    if not isinstance(request, Mapping):
        log.warning(f"[Charts] Chart payload is not an object: {type(request).__name__}")
        return None

    kind = request.get("kind") or request.get("type")
    if not isinstance(kind, str) or kind not in CHART_KINDS:
        log.warning(f"[Charts] Invalid or missing chart kind: {kind!r}")
        return None

    try:
        parsed = _REQUEST_ADAPTER.validate_python({**request, "kind": kind})
        return parsed.to_series()
    except (ValidationError, ValueError, ArithmeticError) as exc:
        log.warning(f"[Charts] Dropped {kind} chart: {exc}")
        return None
