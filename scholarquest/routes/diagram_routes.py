"""
Diagram Routes for ScholarQuest.
Validates and sanitizes generated SVG geometry diagrams before display,
and checks the geometry metadata they are rendered from.
"""
import logging
from flask import Blueprint, request, jsonify

from scholarquest.services import diagram_cache
from scholarquest.services.geometry_validation import validate_geometry_metadata
from scholarquest.services.svg_validation import (
    validate_svg, validate_svg_data_url, sanitize_svg,
)

diagram_bp = Blueprint('diagram', __name__)
logger = logging.getLogger(__name__)


def _validate(mode, content):
    if mode == 'data_url':
        return validate_svg_data_url(content)
    return validate_svg(content)


@diagram_bp.route('/api/diagrams/validate', methods=['POST'])
def validate_diagram():
    """
    Validate an SVG diagram.

    Body: {"svg": "<svg ...>"} or {"data_url": "data:image/svg+xml..."},
    optional "sanitize": true to sanitize SVG markup first.
    Invalid diagrams are a 200 with is_valid false; callers show a retry.
    """
    data = request.get_json(silent=True) or {}
    svg = data.get('svg')
    data_url = data.get('data_url')

    if isinstance(data_url, str):
        mode, content = 'data_url', data_url
    elif isinstance(svg, str):
        mode, content = 'svg', svg
        if data.get('sanitize'):
            mode, content = 'sanitized', sanitize_svg(svg)
    else:
        return jsonify({"error": "Provide 'svg' or 'data_url'"}), 400

    cache = diagram_cache.get_diagram_cache()
    result = cache.get_or_compute(
        diagram_cache.make_key(mode, content),
        lambda: _validate(mode, content),
    )
    if not result.is_valid:
        logger.info("Rejected diagram (%s): %s", mode, "; ".join(result.errors))

    response = result.to_dict()
    if mode == 'sanitized':
        response["svg"] = content
    return jsonify(response)


@diagram_bp.route('/api/diagrams/sanitize', methods=['POST'])
def sanitize_diagram():
    """Strip scripts, event handlers and javascript: URLs from an SVG."""
    data = request.get_json(silent=True) or {}
    svg = data.get('svg')
    if not isinstance(svg, str):
        return jsonify({"error": "Missing svg"}), 400
    return jsonify({"svg": sanitize_svg(svg)})


@diagram_bp.route('/api/diagrams/cache', methods=['GET'])
def diagram_cache_stats():
    """Size and hit counts of the validation cache."""
    return jsonify(diagram_cache.get_diagram_cache().stats())


@diagram_bp.route('/api/diagrams/geometry', methods=['POST'])
def validate_geometry():
    """
    Validate the structured geometry behind a diagram.

    Body: {"geometry": {...}, "use_extended_bounds": bool, "strict_mode": bool}
    """
    data = request.get_json(silent=True) or {}
    geometry = data.get('geometry')
    if not isinstance(geometry, dict):
        return jsonify({"error": "Missing geometry object"}), 400

    result = validate_geometry_metadata(
        geometry,
        use_extended_bounds=data.get('use_extended_bounds') is True,
        strict_mode=data.get('strict_mode') is True,
    )
    if not result.is_valid:
        logger.info("Rejected geometry (%s): %s", geometry.get('type'),
                    "; ".join(e.message for e in result.errors))
    return jsonify(result.to_dict())
