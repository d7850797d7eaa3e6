"""
Geometry Metadata Validation
============================

Checks the structured geometry description that comes with a generated
diagram (shape type, labelled vertices, axes, circle) before it is
rendered to SVG. Works on the decoded JSON payload, so field names keep
their wire spelling (`numberLine`, `minX`, ...).

Like the SVG gate, validation never raises; `validate_or_throw` is the
raising wrapper for pipeline code that wants an exception.

    result = validate_geometry_metadata(payload["geometry"], strict_mode=True)
    if not result.is_valid:
        ...
"""
import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_COORDINATE_BOUNDS = (-10, 10)
EXTENDED_COORDINATE_BOUNDS = (-50, 50)
MIN_VERTEX_DISTANCE = 0.1

# Error codes
MISSING_REQUIRED_FIELD = 'GEO_P02'
INVALID_SHAPE_TYPE = 'GEO_P03'
INVALID_COORDINATES = 'GEO_P04'
DUPLICATE_VERTEX_LABELS = 'GEO_P05'
ALGEBRAIC_COORDINATES = 'GEO_P06'
COORDINATES_OUT_OF_BOUNDS = 'GEO_P07'
INSUFFICIENT_VERTICES = 'GEO_P08'
OVERLAPPING_VERTICES = 'GEO_P09'

GEOMETRY_SHAPE_TYPES = (
    # 2D shapes
    'coordinate_polygon', 'triangle', 'quadrilateral',
    # Circles and curves
    'circle', 'circle_chord', 'circle_tangent', 'circle_secant', 'arc', 'semicircle',
    # Lines
    'number_line', 'line_segment', 'ray', 'line',
    # Transformations
    'rotation', 'reflection', 'translation', 'dilation',
    # Angles
    'angle_diagram', 'parallel_transversal', 'inscribed_angle', 'vertical_angles',
    # Advanced
    'similar_triangles', 'congruent_triangles', 'inequality_graph',
    'parabola_vertex_form', 'ellipse', 'hyperbola',
    # 3D
    'prism_3d', 'pyramid_3d', 'cylinder_3d', 'cone_3d', 'sphere_3d',
)

SHAPE_VALIDATION_RULES = {
    'triangle': {'required_vertices': 3, 'required_fields': ['vertices']},
    'quadrilateral': {'required_vertices': 4, 'required_fields': ['vertices']},
    'coordinate_polygon': {'min_vertices': 2, 'required_fields': ['vertices', 'axes']},
    'circle': {'required_fields': ['circle']},
    'circle_chord': {'required_fields': ['circle']},
    'circle_tangent': {'required_fields': ['circle']},
    'number_line': {'required_fields': ['numberLine']},
    'rotation': {'required_fields': ['transformation']},
    'reflection': {'required_fields': ['transformation']},
    'translation': {'required_fields': ['transformation']},
    'dilation': {'required_fields': ['transformation']},
    'angle_diagram': {'required_fields': ['angle']},
}


@dataclass(frozen=True)
class GeometryError:
    code: str
    message: str
    field: Optional[str] = None

    def to_dict(self):
        return {"code": self.code, "message": self.message, "field": self.field}


@dataclass(frozen=True)
class GeometryWarning:
    message: str
    field: Optional[str] = None

    def to_dict(self):
        return {"message": self.message, "field": self.field}


@dataclass(frozen=True)
class GeometryValidationResult:
    is_valid: bool
    errors: Tuple[GeometryError, ...] = field(default_factory=tuple)
    warnings: Tuple[GeometryWarning, ...] = field(default_factory=tuple)

    @classmethod
    def from_findings(cls, errors, warnings=()):
        return cls(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))

    def to_dict(self):
        return {
            "is_valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


class GeometryParseError(Exception):
    """Raised by validate_or_throw with the first error's code and message."""

    def __init__(self, code, message, details=None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


def is_finite_number(value):
    """Real numbers only: strings, booleans and NaN/inf are not coordinates."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _is_blank(value):
    """Missing as a JSON value: absent, null, false, 0 or empty string."""
    if value is None or value is False or value == "":
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or math.isnan(value)
    return False


def _fmt(value):
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def has_algebraic_coordinates(vertices):
    return any(not is_finite_number(v.get('x')) or not is_finite_number(v.get('y')) for v in vertices)


def are_vertices_overlapping(v1, v2, threshold=MIN_VERTEX_DISTANCE):
    return math.hypot(v1['x'] - v2['x'], v1['y'] - v2['y']) < threshold


def _validate_vertices(vertices, shape_type, rules, bounds, strict_mode):
    errors, warnings = [], []

    required = rules.get('required_vertices')
    minimum = rules.get('min_vertices')
    if required is not None and len(vertices) != required:
        errors.append(GeometryError(
            INSUFFICIENT_VERTICES,
            f"{shape_type} requires exactly {required} vertices, got {len(vertices)}",
            'vertices',
        ))
    elif required is None and minimum is not None and len(vertices) < minimum:
        errors.append(GeometryError(
            INSUFFICIENT_VERTICES,
            f"{shape_type} requires at least {minimum} vertices, got {len(vertices)}",
            'vertices',
        ))

    if has_algebraic_coordinates(vertices):
        errors.append(GeometryError(
            ALGEBRAIC_COORDINATES,
            'Vertices contain algebraic/non-numeric coordinates',
            'vertices',
        ))
        return errors, warnings

    low, high = bounds
    seen_labels = set()
    for i, vertex in enumerate(vertices):
        label = vertex.get('label')
        if not isinstance(label, str) or not label.strip():
            errors.append(GeometryError(
                MISSING_REQUIRED_FIELD, f"Vertex at index {i} is missing a label", f"vertices[{i}].label"))
        else:
            if label in seen_labels:
                errors.append(GeometryError(
                    DUPLICATE_VERTEX_LABELS, f"Duplicate vertex label: '{label}'", f"vertices[{i}].label"))
            seen_labels.add(label)

        for axis in ('x', 'y'):
            value = vertex[axis]
            if low <= value <= high:
                continue
            field_name = f"vertices[{i}].{axis}"
            if strict_mode:
                errors.append(GeometryError(
                    COORDINATES_OUT_OF_BOUNDS,
                    f"Vertex '{label}' {axis}-coordinate {_fmt(value)} is out of bounds [{low}, {high}]",
                    field_name,
                ))
            else:
                warnings.append(GeometryWarning(
                    f"Vertex '{label}' {axis}-coordinate {_fmt(value)} is outside typical range", field_name))

        for other in vertices[i + 1:]:
            if are_vertices_overlapping(vertex, other):
                errors.append(GeometryError(
                    OVERLAPPING_VERTICES,
                    f"Vertices '{label}' and '{other.get('label')}' are too close",
                    'vertices',
                ))

    return errors, warnings


def _validate_axes(axes):
    errors = []
    for name in ('minX', 'maxX', 'minY', 'maxY'):
        if not is_finite_number(axes.get(name)):
            errors.append(GeometryError(INVALID_COORDINATES, f"axes.{name} must be finite", f"axes.{name}"))

    for low, high in (('minX', 'maxX'), ('minY', 'maxY')):
        if (is_finite_number(axes.get(low)) and is_finite_number(axes.get(high))
                and axes[low] >= axes[high]):
            errors.append(GeometryError(INVALID_COORDINATES, f"axes.{low} must be less than axes.{high}", 'axes'))
    return errors


def _validate_circle(circle):
    errors = []
    center = circle.get('center')
    if _is_blank(center):
        errors.append(GeometryError(MISSING_REQUIRED_FIELD, 'Circle center is required', 'circle.center'))
    else:
        center = center if isinstance(center, dict) else {}
        for axis in ('x', 'y'):
            if not is_finite_number(center.get(axis)):
                errors.append(GeometryError(
                    INVALID_COORDINATES, f"Circle center {axis} must be finite", f"circle.center.{axis}"))

    radius = circle.get('radius')
    if not is_finite_number(radius) or radius <= 0:
        errors.append(GeometryError(INVALID_COORDINATES, 'Circle radius must be positive', 'circle.radius'))
    return errors


def validate_geometry_metadata(geometry, use_extended_bounds=False, strict_mode=False) -> GeometryValidationResult:
    """
    Validate a geometry metadata object.

    Args:
        geometry: Decoded JSON object describing the diagram
        use_extended_bounds: Allow coordinates in [-50, 50] instead of [-10, 10]
        strict_mode: Out-of-bounds coordinates are errors instead of warnings

    Returns:
        GeometryValidationResult
    """
    if not isinstance(geometry, dict):
        geometry = {}

    shape_type = geometry.get('type')
    if _is_blank(shape_type):
        return GeometryValidationResult.from_findings(
            [GeometryError(MISSING_REQUIRED_FIELD, 'Geometry type is required', 'type')])
    if shape_type not in GEOMETRY_SHAPE_TYPES:
        return GeometryValidationResult.from_findings(
            [GeometryError(INVALID_SHAPE_TYPE, f"Invalid geometry type: {shape_type}", 'type')])

    errors, warnings = [], []
    rules = SHAPE_VALIDATION_RULES.get(shape_type, {})
    for required in rules.get('required_fields', []):
        if _is_blank(geometry.get(required)):
            errors.append(GeometryError(
                MISSING_REQUIRED_FIELD, f"Required field '{required}' is missing for {shape_type}", required))

    vertices = geometry.get('vertices')
    if not _is_blank(vertices):
        if isinstance(vertices, list):
            vertices = [v if isinstance(v, dict) else {} for v in vertices]
            bounds = EXTENDED_COORDINATE_BOUNDS if use_extended_bounds else DEFAULT_COORDINATE_BOUNDS
            vertex_errors, vertex_warnings = _validate_vertices(vertices, shape_type, rules, bounds, strict_mode)
            errors.extend(vertex_errors)
            warnings.extend(vertex_warnings)
        else:
            errors.append(GeometryError(INVALID_COORDINATES, 'vertices must be a list', 'vertices'))

    axes = geometry.get('axes')
    if not _is_blank(axes):
        errors.extend(_validate_axes(axes if isinstance(axes, dict) else {}))

    circle = geometry.get('circle')
    if not _is_blank(circle):
        errors.extend(_validate_circle(circle if isinstance(circle, dict) else {}))

    return GeometryValidationResult.from_findings(errors, warnings)


def is_valid_geometry(geometry, **options):
    return validate_geometry_metadata(geometry, **options).is_valid


def validate_or_throw(geometry, **options):
    """Raise GeometryParseError carrying the first error when invalid."""
    result = validate_geometry_metadata(geometry, **options)
    if not result.is_valid:
        first = result.errors[0]
        raise GeometryParseError(first.code, first.message, {
            "field": first.field,
            "all_errors": [e.to_dict() for e in result.errors],
            "warnings": [w.to_dict() for w in result.warnings],
        })
    return result