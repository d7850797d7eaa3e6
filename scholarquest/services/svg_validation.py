"""
SVG Validation
==============

Checks generated geometry diagrams before a teacher or student sees them.

Validation never raises: every problem comes back in the result's
`errors` (blocking) or `warnings` (advisory) lists. Callers must not
render an SVG whose result is not valid.

    result = validate_svg(svg_text)
    if not result.is_valid:
        ...show the retry UI...
"""
import base64
import binascii
import re
from dataclasses import dataclass, field
from typing import Tuple
from urllib.parse import unquote_to_bytes

MIN_SVG_LENGTH = 100
TAG_BALANCE_TOLERANCE = 5
DATA_URL_PREFIX = "data:image/svg+xml"

_VIEWBOX_RE = re.compile(r'viewBox\s*=\s*["\']([^"\']+)["\']')
_WIDTH_RE = re.compile(r'width\s*=\s*["\']?\d+')
_HEIGHT_RE = re.compile(r'height\s*=\s*["\']?\d+')

SHAPE_PATTERNS = [
    re.compile(r'<polygon\s'),
    re.compile(r'<circle\s'),
    re.compile(r'<ellipse\s'),
    re.compile(r'<path\s'),
    re.compile(r'<line\s'),
    re.compile(r'<rect\s'),
    re.compile(r'<polyline\s'),
]

_SCRIPT_TAG_RE = re.compile(r'<script', re.IGNORECASE)
_JAVASCRIPT_URL_RE = re.compile(r'javascript:', re.IGNORECASE)
_TEXT_TAG_RE = re.compile(r'<text\s')

_OPEN_TAG_RE = re.compile(r'<(\w+)[\s>]')
_CLOSE_TAG_RE = re.compile(r'</(\w+)>')
_SELF_CLOSING_RE = re.compile(r'/>')

# Sanitizer patterns
_SCRIPT_BLOCK_RE = re.compile(r'<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>', re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r'\son\w+\s*=\s*["\'][^"\']*["\']', re.IGNORECASE)
_JAVASCRIPT_FRAGMENT_RE = re.compile(r'javascript:[^"\']*', re.IGNORECASE)

_BAD_PERCENT_RE = re.compile(r'%(?![0-9A-Fa-f]{2})')

# Messages
ERR_TOO_SHORT = "SVG content too short (< 100 chars)"
ERR_NO_SVG_START = "SVG must start with <svg tag"
ERR_NO_SVG_END = "SVG must end with </svg> tag"
ERR_NO_DIMENSIONS = "SVG missing viewBox or width/height attributes"
ERR_NO_SHAPES = "SVG contains no shape elements (polygon, circle, path, line, rect)"
ERR_SCRIPT_TAG = "SVG contains <script> tag (security violation)"
ERR_JAVASCRIPT_URL = "SVG contains javascript: URL (security violation)"
ERR_NOT_DATA_URL = "Not a valid SVG data URL"
WARN_ZERO_VIEWBOX = "ViewBox has zero width or height"
WARN_NO_TEXT = "SVG contains no text elements (labels may be missing)"
WARN_TAG_BALANCE = "Possible XML structure issue (unmatched tags)"


@dataclass(frozen=True)
class SVGValidationResult:
    is_valid: bool
    errors: Tuple[str, ...] = field(default_factory=tuple)
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_findings(cls, errors, warnings=()):
        return cls(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))

    def to_dict(self):
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def _viewbox_has_zero_size(viewbox):
    """True when the width or height component of a viewBox parses to zero."""
    parts = viewbox.split()
    for part in parts[2:4]:
        try:
            if float(part) == 0:
                return True
        except ValueError:
            continue
    return False


def _tag_balance_off(svg_text):
    # Rough count only, not an XML parse
    open_tags = len(_OPEN_TAG_RE.findall(svg_text))
    close_tags = len(_CLOSE_TAG_RE.findall(svg_text))
    self_closing = len(_SELF_CLOSING_RE.findall(svg_text))
    return abs(open_tags - (close_tags + self_closing)) > TAG_BALANCE_TOLERANCE


def validate_svg(svg_text) -> SVGValidationResult:
    """
    Validate an SVG string.

    Checks:
    1. Minimum length (stops here when too short)
    2. Starts with <svg and ends with </svg>
    3. Has a viewBox, or both width and height
    4. Contains at least one shape element
    5. No <script> tags
    6. No javascript: URLs

    Warnings (never affect is_valid):
    - viewBox with zero width or height
    - no <text> elements
    - open/close tag counts differ by more than 5
    """
    errors = []
    warnings = []

    if not svg_text or len(svg_text.strip()) < MIN_SVG_LENGTH:
        errors.append(ERR_TOO_SHORT)
        return SVGValidationResult.from_findings(errors)

    trimmed = svg_text.strip()
    if not trimmed.startswith("<svg"):
        errors.append(ERR_NO_SVG_START)
    if not trimmed.endswith("</svg>"):
        errors.append(ERR_NO_SVG_END)

    viewbox_match = _VIEWBOX_RE.search(svg_text)
    has_width = _WIDTH_RE.search(svg_text) is not None
    has_height = _HEIGHT_RE.search(svg_text) is not None
    if viewbox_match is None and not (has_width and has_height):
        errors.append(ERR_NO_DIMENSIONS)

    if not any(pattern.search(svg_text) for pattern in SHAPE_PATTERNS):
        errors.append(ERR_NO_SHAPES)

    if _SCRIPT_TAG_RE.search(svg_text):
        errors.append(ERR_SCRIPT_TAG)

    if _JAVASCRIPT_URL_RE.search(svg_text):
        errors.append(ERR_JAVASCRIPT_URL)

    if viewbox_match is not None and _viewbox_has_zero_size(viewbox_match.group(1)):
        warnings.append(WARN_ZERO_VIEWBOX)

    if not _TEXT_TAG_RE.search(svg_text):
        warnings.append(WARN_NO_TEXT)

    if _tag_balance_off(svg_text):
        warnings.append(WARN_TAG_BALANCE)

    return SVGValidationResult.from_findings(errors, warnings)


def _percent_decode(text):
    """Strict percent-decoding: malformed escapes and bad UTF-8 raise ValueError."""
    bad = _BAD_PERCENT_RE.search(text)
    if bad:
        raise ValueError("malformed percent-escape at position %d" % bad.start())
    return unquote_to_bytes(text).decode("utf-8")


def decode_svg_data_url(data_url):
    """
    Extract the SVG markup from a data URL.
    Raises ValueError when the payload cannot be decoded.
    """
    if "base64," in data_url:
        payload = "".join(data_url.split("base64,", 1)[1].split())
        try:
            return base64.b64decode(payload, validate=True).decode("utf-8")
        except binascii.Error as e:
            raise ValueError("invalid base64 payload: %s" % e) from e
    payload = data_url.partition(",")[2]
    return _percent_decode(payload)


def validate_svg_data_url(data_url) -> SVGValidationResult:
    """Validate an SVG embedded in a data:image/svg+xml URL."""
    if not data_url or not data_url.startswith(DATA_URL_PREFIX):
        return SVGValidationResult.from_findings([ERR_NOT_DATA_URL])

    try:
        svg_text = decode_svg_data_url(data_url)
    except ValueError as e:
        return SVGValidationResult.from_findings(["Failed to decode SVG data URL: %s" % e])

    return validate_svg(svg_text)


def sanitize_svg(svg_text):
    """
    Strip script blocks, inline on* event handlers and javascript: URLs.

    This is a lightweight pass run before validation and display. It is
    NOT a substitute for a full HTML/SVG sanitizer and must not be the
    only protection in front of untrusted markup.
    """
    sanitized = svg_text or ""
    sanitized = _SCRIPT_BLOCK_RE.sub("", sanitized)
    sanitized = _EVENT_HANDLER_RE.sub("", sanitized)
    sanitized = _JAVASCRIPT_FRAGMENT_RE.sub("", sanitized)
    return sanitized
