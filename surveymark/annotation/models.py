"""
Annotation Data Models

Dataclasses for the five annotation variants drawn on survey photos, the
render transform recorded alongside them, and the two aggregate types:

- DisplayAnnotations: geometry in the pixel space of the stage currently shown
- StoredAnnotations: geometry normalized to the image (the only serializable form)
"""
from dataclasses import dataclass, field, replace
import json
import logging
import math
import uuid
from typing import Any, Callable, ClassVar, Dict, Iterator, List, Optional, Tuple

from surveymark import config
from .errors import MalformedAnnotation

logger = logging.getLogger(__name__)

PointFn = Callable[[float, float], Tuple[float, float]]
SizeFn = Callable[[float, float], Tuple[float, float]]
LengthFn = Callable[[float], float]
MalformedCallback = Callable[[MalformedAnnotation], None]

COLLECTIONS = ("lines", "rects", "arrows", "texts", "dimensions")


def generate_id() -> str:
    """Generate a short random annotation id"""
    return uuid.uuid4().hex[:9]


def _number(value: Any, name: str, annotation_id: Optional[str], kind: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedAnnotation(annotation_id, kind, f"{name} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise MalformedAnnotation(annotation_id, kind, f"{name} must be finite, got {value!r}")
    return value


def _optional_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def _map_length(value: Optional[float], length: LengthFn) -> Optional[float]:
    return None if value is None else length(value)


def _or_default(value: Optional[float], default: float) -> float:
    return default if value is None else value


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset optional fields from a serialized annotation"""
    return {key: value for key, value in data.items() if value is not None}


@dataclass
class _SegmentAnnotation:
    """Shared behaviour for annotations defined by a flat [x1, y1, x2, y2] list"""
    id: str = field(default_factory=generate_id)
    points: List[float] = field(default_factory=list)
    color: str = config.DEFAULT_STROKE_COLOR
    stroke_width: Optional[float] = config.DEFAULT_STROKE_WIDTH

    type: ClassVar[str] = ""

    def validate(self) -> None:
        """Raise MalformedAnnotation unless points holds exactly four finite numbers"""
        if len(self.points) != 4:
            raise MalformedAnnotation(
                self.id, self.type, f"expected 4 point coordinates, got {len(self.points)}"
            )
        for i, v in enumerate(self.points):
            _number(v, f"points[{i}]", self.id, self.type)

    @property
    def endpoints(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        x1, y1, x2, y2 = self.points
        return (x1, y1), (x2, y2)

    def _mapped_points(self, point: PointFn) -> List[float]:
        (x1, y1), (x2, y2) = self.endpoints
        return [*point(x1, y1), *point(x2, y2)]

    def transformed(self, point: PointFn, size: SizeFn, length: LengthFn):
        """Return a copy with every geometry field mapped through the given functions"""
        self.validate()
        return replace(
            self,
            points=self._mapped_points(point),
            stroke_width=_map_length(self.stroke_width, length),
        )

    def with_default_lengths(self):
        """Fill an unset stroke width with the default, in stage pixels"""
        return replace(self, stroke_width=_or_default(self.stroke_width, config.DEFAULT_STROKE_WIDTH))

    def _base_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "points": list(self.points),
            "color": self.color,
            "strokeWidth": self.stroke_width,
        }

    def to_dict(self) -> Dict[str, Any]:
        return _compact(self._base_dict())

    @classmethod
    def _base_kwargs(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        annotation_id = data.get("id") or generate_id()
        raw_points = data.get("points") or []
        if not isinstance(raw_points, (list, tuple)):
            raise MalformedAnnotation(annotation_id, cls.type, "points must be a list")
        points = [_number(v, f"points[{i}]", annotation_id, cls.type) for i, v in enumerate(raw_points)]
        return {
            "id": annotation_id,
            "points": points,
            "color": data.get("color") or config.DEFAULT_STROKE_COLOR,
            "stroke_width": _optional_number(data.get("strokeWidth")),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        annotation = cls(**cls._base_kwargs(data))
        annotation.validate()
        return annotation


@dataclass
class LineAnnotation(_SegmentAnnotation):
    """Straight line between two points"""
    type: ClassVar[str] = "line"


@dataclass
class ArrowAnnotation(_SegmentAnnotation):
    """Arrow from the first point to the second"""
    type: ClassVar[str] = "arrow"


@dataclass
class DimensionAnnotation(_SegmentAnnotation):
    """
    Calibrated measurement drawn between two points

    Attributes:
        value: Measurement as typed by the user (not necessarily numeric)
        unit: Unit string ("ft", "mm", ...)
        font_size: Label font size
        comment: Optional free-text comment rendered under the label
    """
    color: str = config.DEFAULT_DIMENSION_COLOR
    value: str = ""
    unit: str = ""
    font_size: Optional[float] = config.DEFAULT_FONT_SIZE
    comment: Optional[str] = None

    type: ClassVar[str] = "dimension"

    @property
    def label_text(self) -> str:
        """Text drawn at the label anchor, e.g. '12.5 ft'"""
        return f"{self.value} {self.unit}".strip()

    def transformed(self, point: PointFn, size: SizeFn, length: LengthFn) -> "DimensionAnnotation":
        self.validate()
        return replace(
            self,
            points=self._mapped_points(point),
            stroke_width=_map_length(self.stroke_width, length),
            font_size=_map_length(self.font_size, length),
        )

    def with_default_lengths(self) -> "DimensionAnnotation":
        return replace(
            self,
            stroke_width=_or_default(self.stroke_width, config.DEFAULT_STROKE_WIDTH),
            font_size=_or_default(self.font_size, config.DEFAULT_FONT_SIZE),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self._base_dict()
        data.update({
            "value": self.value,
            "unit": self.unit,
            "fontSize": self.font_size,
            "comment": self.comment,
        })
        return _compact(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DimensionAnnotation":
        kwargs = cls._base_kwargs(data)
        kwargs["color"] = data.get("color") or config.DEFAULT_DIMENSION_COLOR
        comment = data.get("comment")
        annotation = cls(
            value=str(data.get("value") or ""),
            unit=str(data.get("unit") or ""),
            font_size=_optional_number(data.get("fontSize")),
            comment=str(comment) if comment is not None else None,
            **kwargs,
        )
        annotation.validate()
        return annotation


@dataclass
class RectAnnotation:
    """
    Axis-aligned rectangle

    Width and height may be negative while a drag is in progress;
    with_positive_size() produces the committed form.
    """
    id: str = field(default_factory=generate_id)
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    color: str = config.DEFAULT_STROKE_COLOR
    stroke_width: Optional[float] = config.DEFAULT_STROKE_WIDTH

    type: ClassVar[str] = "rect"

    def validate(self) -> None:
        for name in ("x", "y", "width", "height"):
            _number(getattr(self, name), name, self.id, self.type)

    def with_positive_size(self) -> "RectAnnotation":
        """Return the same rectangle with non-negative width and height"""
        x, width = (self.x + self.width, -self.width) if self.width < 0 else (self.x, self.width)
        y, height = (self.y + self.height, -self.height) if self.height < 0 else (self.y, self.height)
        return replace(self, x=x, y=y, width=width, height=height)

    def transformed(self, point: PointFn, size: SizeFn, length: LengthFn) -> "RectAnnotation":
        self.validate()
        x, y = point(self.x, self.y)
        width, height = size(self.width, self.height)
        return replace(self, x=x, y=y, width=width, height=height,
                       stroke_width=_map_length(self.stroke_width, length))

    def with_default_lengths(self) -> "RectAnnotation":
        return replace(self, stroke_width=_or_default(self.stroke_width, config.DEFAULT_STROKE_WIDTH))

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "type": self.type,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "color": self.color,
            "strokeWidth": self.stroke_width,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RectAnnotation":
        annotation_id = data.get("id") or generate_id()
        return cls(
            id=annotation_id,
            x=_number(data.get("x") or 0, "x", annotation_id, cls.type),
            y=_number(data.get("y") or 0, "y", annotation_id, cls.type),
            width=_number(data.get("width") or 0, "width", annotation_id, cls.type),
            height=_number(data.get("height") or 0, "height", annotation_id, cls.type),
            color=data.get("color") or config.DEFAULT_STROKE_COLOR,
            stroke_width=_optional_number(data.get("strokeWidth")),
        )


@dataclass
class TextAnnotation:
    """Free text placed at a point"""
    id: str = field(default_factory=generate_id)
    x: float = 0.0
    y: float = 0.0
    text: str = config.DEFAULT_TEXT
    color: str = config.DEFAULT_STROKE_COLOR
    font_size: Optional[float] = config.DEFAULT_FONT_SIZE

    type: ClassVar[str] = "text"

    def validate(self) -> None:
        for name in ("x", "y"):
            _number(getattr(self, name), name, self.id, self.type)

    def transformed(self, point: PointFn, size: SizeFn, length: LengthFn) -> "TextAnnotation":
        self.validate()
        x, y = point(self.x, self.y)
        return replace(self, x=x, y=y, font_size=_map_length(self.font_size, length))

    def with_default_lengths(self) -> "TextAnnotation":
        return replace(self, font_size=_or_default(self.font_size, config.DEFAULT_FONT_SIZE))

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "type": self.type,
            "x": self.x,
            "y": self.y,
            "text": self.text,
            "color": self.color,
            "fontSize": self.font_size,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TextAnnotation":
        annotation_id = data.get("id") or generate_id()
        return cls(
            id=annotation_id,
            x=_number(data.get("x") or 0, "x", annotation_id, cls.type),
            y=_number(data.get("y") or 0, "y", annotation_id, cls.type),
            text=str(data.get("text") or config.DEFAULT_TEXT),
            color=data.get("color") or config.DEFAULT_STROKE_COLOR,
            font_size=_optional_number(data.get("fontSize")),
        )


ANNOTATION_TYPES = {
    "lines": LineAnnotation,
    "rects": RectAnnotation,
    "arrows": ArrowAnnotation,
    "texts": TextAnnotation,
    "dimensions": DimensionAnnotation,
}


@dataclass(frozen=True)
class ImageRenderTransform:
    """Contain-fit in effect when geometry was last normalized"""
    image_scale: float
    image_x: float
    image_y: float
    image_rotation: int = 0

    def to_dict(self) -> Dict[str, float]:
        return {
            "imageScale": self.image_scale,
            "imageX": self.image_x,
            "imageY": self.image_y,
            "imageRotation": self.image_rotation,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ImageRenderTransform"]:
        """Parse a recorded transform, returning None if it is absent or unusable"""
        if not isinstance(data, dict):
            return None
        scale = _optional_number(data.get("imageScale"))
        x = _optional_number(data.get("imageX"))
        y = _optional_number(data.get("imageY"))
        if scale is None or scale <= 0 or x is None or y is None:
            return None
        rotation = _optional_number(data.get("imageRotation")) or 0
        return cls(image_scale=scale, image_x=x, image_y=y, image_rotation=int(rotation) % 360)


def report_malformed(
    error: MalformedAnnotation,
    collection: str,
    on_malformed: Optional[MalformedCallback],
) -> None:
    """Log a dropped annotation and hand it to the caller's callback"""
    logger.warning(f"Dropping malformed annotation in {collection}: {error}")
    if on_malformed is not None:
        on_malformed(error)


@dataclass
class AnnotationSet:
    """Five annotation collections plus presentation metadata"""
    lines: List[LineAnnotation] = field(default_factory=list)
    rects: List[RectAnnotation] = field(default_factory=list)
    arrows: List[ArrowAnnotation] = field(default_factory=list)
    texts: List[TextAnnotation] = field(default_factory=list)
    dimensions: List[DimensionAnnotation] = field(default_factory=list)
    stage_width: Optional[float] = None
    stage_height: Optional[float] = None
    image_natural_width: Optional[float] = None
    image_natural_height: Optional[float] = None
    image_render_transform: Optional[ImageRenderTransform] = None
    image_normalized_version: Optional[int] = None

    def iter_annotations(self) -> Iterator[Tuple[str, Any]]:
        """Yield (collection name, annotation) for every annotation"""
        for name in COLLECTIONS:
            for annotation in getattr(self, name):
                yield name, annotation

    def get(self, annotation_id: str) -> Optional[Any]:
        """Get an annotation by id from any collection"""
        for _, annotation in self.iter_annotations():
            if annotation.id == annotation_id:
                return annotation
        return None

    @property
    def total_annotations(self) -> int:
        return sum(len(getattr(self, name)) for name in COLLECTIONS)

    def is_empty(self) -> bool:
        return self.total_annotations == 0


@dataclass
class DisplayAnnotations(AnnotationSet):
    """
    Annotations in the pixel space of the stage currently on screen

    Never serialized directly: run normalize_annotations_for_storage() first.
    """


@dataclass
class StoredAnnotations(AnnotationSet):
    """
    Annotations in the durable, viewport-independent encoding

    normalized_version is None for payloads written before versioning existed;
    see migrate_legacy_annotations().
    """
    normalized_version: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            name: [a.to_dict() for a in getattr(self, name)] for name in COLLECTIONS
        }
        for key, value in (
            ("stageWidth", self.stage_width),
            ("stageHeight", self.stage_height),
            ("imageNaturalWidth", self.image_natural_width),
            ("imageNaturalHeight", self.image_natural_height),
            ("normalizedVersion", self.normalized_version),
            ("imageNormalizedVersion", self.image_normalized_version),
        ):
            if value is not None:
                data[key] = value
        if self.image_render_transform is not None:
            data["imageRenderTransform"] = self.image_render_transform.to_dict()
        return data

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize to JSON string"""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(
        cls,
        data: Optional[Dict[str, Any]],
        on_malformed: Optional[MalformedCallback] = None,
    ) -> "StoredAnnotations":
        """
        Parse a persisted payload

        Missing collections and missing per-item fields are filled with
        defaults, except stroke width and font size: their unit depends on
        the schema version, so a missing one stays None until the
        annotations are denormalized. Items whose geometry cannot be read
        are dropped and reported; the rest of the payload is kept.

        Args:
            data: Payload as loaded from JSON (None yields an empty set)
            on_malformed: Called with each MalformedAnnotation that was dropped

        Returns:
            StoredAnnotations (possibly legacy; check normalized_version)
        """
        if not data:
            return cls()

        collections: Dict[str, list] = {}
        for name, annotation_cls in ANNOTATION_TYPES.items():
            items = data.get(name) or []
            parsed = []
            for item in items:
                if not isinstance(item, dict):
                    report_malformed(
                        MalformedAnnotation(None, annotation_cls.type, f"expected an object, got {item!r}"),
                        name, on_malformed,
                    )
                    continue
                try:
                    parsed.append(annotation_cls.from_dict(item))
                except MalformedAnnotation as e:
                    report_malformed(e, name, on_malformed)
            collections[name] = parsed

        version = data.get("normalizedVersion")
        image_version = data.get("imageNormalizedVersion")
        return cls(
            stage_width=_optional_number(data.get("stageWidth")),
            stage_height=_optional_number(data.get("stageHeight")),
            image_natural_width=_optional_number(data.get("imageNaturalWidth")),
            image_natural_height=_optional_number(data.get("imageNaturalHeight")),
            image_render_transform=ImageRenderTransform.from_dict(data.get("imageRenderTransform")),
            normalized_version=int(version) if _optional_number(version) is not None else None,
            image_normalized_version=int(image_version) if _optional_number(image_version) is not None else None,
            **collections,
        )

    @classmethod
    def from_json(
        cls,
        json_str: str,
        on_malformed: Optional[MalformedCallback] = None,
    ) -> "StoredAnnotations":
        """Deserialize from JSON string"""
        return cls.from_dict(json.loads(json_str), on_malformed=on_malformed)
