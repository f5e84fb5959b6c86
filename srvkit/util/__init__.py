"""Small helpers shared by the server modules."""

from .html import escape_html, generate_error_html_body, generate_error_html_page
from .size import InvalidSizeError, size_str, size_to_bytes
from .xml import escape_xml, normalize_xml_data, parse_xml, read_xml_file

__all__ = [
    "escape_html",
    "generate_error_html_page",
    "generate_error_html_body",
    "escape_xml",
    "parse_xml",
    "normalize_xml_data",
    "read_xml_file",
    "size_to_bytes",
    "size_str",
    "InvalidSizeError",
]
