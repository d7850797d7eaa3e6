"""
Test: Geometry metadata validation: shape rules, vertices, axes, circles,
and the diagram endpoint.
"""
import math

import pytest

from scholarquest.services.geometry_validation import (
    validate_geometry_metadata, validate_or_throw, is_valid_geometry, GeometryParseError,
    MISSING_REQUIRED_FIELD, INVALID_SHAPE_TYPE, INVALID_COORDINATES, DUPLICATE_VERTEX_LABELS,
    ALGEBRAIC_COORDINATES, COORDINATES_OUT_OF_BOUNDS, INSUFFICIENT_VERTICES, OVERLAPPING_VERTICES,
)


def triangle(*points):
    points = points or (("A", 0, 0), ("B", 4, 0), ("C", 0, 3))
    return {
        "type": "triangle",
        "vertices": [{"label": label, "x": x, "y": y} for label, x, y in points],
    }


def codes(result):
    return [e.code for e in result.errors]


class TestShapeType:
    def test_valid_triangle(self):
        result = validate_geometry_metadata(triangle())
        assert result.is_valid
        assert result.errors == ()
        assert result.warnings == ()

    @pytest.mark.parametrize("geometry", [{}, {"type": ""}, {"type": None}, "triangle", None])
    def test_missing_type(self, geometry):
        result = validate_geometry_metadata(geometry)
        assert codes(result) == [MISSING_REQUIRED_FIELD]
        assert result.errors[0].field == "type"

    def test_unknown_type_stops_early(self):
        result = validate_geometry_metadata({"type": "hexagon", "vertices": "junk"})
        assert codes(result) == [INVALID_SHAPE_TYPE]
        assert result.errors[0].message == "Invalid geometry type: hexagon"

    def test_shape_without_rules_is_valid(self):
        assert is_valid_geometry({"type": "sphere_3d"})


class TestRequiredFields:
    def test_coordinate_polygon_needs_axes(self):
        geometry = triangle(("A", 0, 0), ("B", 1, 1))
        geometry["type"] = "coordinate_polygon"
        result = validate_geometry_metadata(geometry)
        assert result.errors[0].message == "Required field 'axes' is missing for coordinate_polygon"

    @pytest.mark.parametrize("shape,field", [
        ("circle", "circle"), ("number_line", "numberLine"),
        ("rotation", "transformation"), ("angle_diagram", "angle"),
    ])
    def test_missing_field(self, shape, field):
        result = validate_geometry_metadata({"type": shape})
        assert codes(result) == [MISSING_REQUIRED_FIELD]
        assert result.errors[0].field == field

    def test_empty_vertex_list_counts_as_present(self):
        result = validate_geometry_metadata({"type": "triangle", "vertices": []})
        assert codes(result) == [INSUFFICIENT_VERTICES]


class TestVertices:
    def test_wrong_vertex_count(self):
        result = validate_geometry_metadata(triangle(("A", 0, 0), ("B", 1, 0)))
        assert result.errors[0].message == "triangle requires exactly 3 vertices, got 2"

    def test_minimum_vertex_count(self):
        geometry = {"type": "coordinate_polygon", "vertices": [{"label": "A", "x": 0, "y": 0}],
                    "axes": {"minX": -5, "maxX": 5, "minY": -5, "maxY": 5}}
        result = validate_geometry_metadata(geometry)
        assert result.errors[0].message == "coordinate_polygon requires at least 2 vertices, got 1"

    @pytest.mark.parametrize("x", ["a", "2b", None, True, math.inf, math.nan])
    def test_algebraic_coordinates_stop_vertex_checks(self, x):
        result = validate_geometry_metadata(triangle(("A", x, 0), ("", 4, 0), ("", 0, 3)))
        assert codes(result) == [ALGEBRAIC_COORDINATES]

    def test_missing_and_duplicate_labels(self):
        result = validate_geometry_metadata(triangle(("A", 0, 0), ("  ", 4, 0), ("A", 0, 3)))
        assert codes(result) == [MISSING_REQUIRED_FIELD, DUPLICATE_VERTEX_LABELS]
        assert result.errors[0].field == "vertices[1].label"
        assert result.errors[1].message == "Duplicate vertex label: 'A'"

    def test_out_of_bounds_warns_by_default(self):
        result = validate_geometry_metadata(triangle(("A", 0, 0), ("B", 12.0, 0), ("C", 0, 3)))
        assert result.is_valid
        assert [w.message for w in result.warnings] == ["Vertex 'B' x-coordinate 12 is outside typical range"]

    def test_out_of_bounds_is_error_in_strict_mode(self):
        result = validate_geometry_metadata(triangle(("A", 0, 0), ("B", 4, 0), ("C", 0, -11.5)), strict_mode=True)
        assert codes(result) == [COORDINATES_OUT_OF_BOUNDS]
        assert result.errors[0].message == "Vertex 'C' y-coordinate -11.5 is out of bounds [-10, 10]"

    def test_extended_bounds(self):
        geometry = triangle(("A", 0, 0), ("B", 40, 0), ("C", 0, 30))
        assert validate_geometry_metadata(geometry, use_extended_bounds=True, strict_mode=True).is_valid
        assert not validate_geometry_metadata(geometry, strict_mode=True).is_valid

    def test_overlapping_vertices(self):
        result = validate_geometry_metadata(triangle(("A", 0, 0), ("B", 0.05, 0), ("C", 0, 3)))
        assert codes(result) == [OVERLAPPING_VERTICES]
        assert result.errors[0].message == "Vertices 'A' and 'B' are too close"

    def test_vertices_must_be_a_list(self):
        result = validate_geometry_metadata({"type": "triangle", "vertices": {"A": [0, 0]}})
        assert codes(result) == [INVALID_COORDINATES]


class TestAxes:
    def test_valid_axes(self):
        geometry = triangle(("A", 0, 0), ("B", 1, 1))
        geometry.update(type="coordinate_polygon", axes={"minX": -5, "maxX": 5, "minY": 0, "maxY": 8})
        assert validate_geometry_metadata(geometry).is_valid

    def test_non_finite_and_inverted(self):
        geometry = {"type": "line", "axes": {"minX": 5, "maxX": 5, "minY": "0", "maxY": 8}}
        result = validate_geometry_metadata(geometry)
        assert [e.field for e in result.errors] == ["axes.minY", "axes"]
        assert result.errors[1].message == "axes.minX must be less than axes.maxX"


class TestCircle:
    def test_valid_circle(self):
        assert is_valid_geometry({"type": "circle", "circle": {"center": {"x": 0, "y": 0}, "radius": 3}})

    def test_missing_center_and_bad_radius(self):
        result = validate_geometry_metadata({"type": "circle", "circle": {"radius": 0}})
        assert [e.field for e in result.errors] == ["circle.center", "circle.radius"]

    def test_non_finite_center(self):
        result = validate_geometry_metadata(
            {"type": "circle", "circle": {"center": {"x": "h", "y": 1}, "radius": 2}})
        assert [e.message for e in result.errors] == ["Circle center x must be finite"]


class TestValidateOrThrow:
    def test_raises_first_error(self):
        with pytest.raises(GeometryParseError) as exc_info:
            validate_or_throw({"type": "circle"})
        assert exc_info.value.code == MISSING_REQUIRED_FIELD
        assert exc_info.value.details["field"] == "circle"
        assert len(exc_info.value.details["all_errors"]) == 1

    def test_returns_result_when_valid(self):
        assert validate_or_throw(triangle()).is_valid


class TestEndpoint:
    URL = '/api/diagrams/geometry'

    def test_requires_auth(self, client):
        assert client.post(self.URL, json={"geometry": triangle()}).status_code == 401

    def test_valid(self, client, auth_headers):
        resp = client.post(self.URL, json={"geometry": triangle()}, headers=auth_headers)
        assert resp.get_json() == {"is_valid": True, "errors": [], "warnings": []}

    def test_strict_mode_flag(self, client, auth_headers):
        geometry = triangle(("A", 0, 0), ("B", 20, 0), ("C", 0, 3))
        body = client.post(self.URL, json={"geometry": geometry, "strict_mode": True},
                           headers=auth_headers).get_json()
        assert body["is_valid"] is False
        assert body["errors"][0]["code"] == COORDINATES_OUT_OF_BOUNDS
        assert body["errors"][0]["field"] == "vertices[1].x"

    def test_missing_geometry(self, client, auth_headers):
        assert client.post(self.URL, json={}, headers=auth_headers).status_code == 400