"""
XML helpers.

Documents are turned into plain Python data: attributes go under ``$``,
character data under ``_`` and child elements under their tag name
(repeated tags become lists). With ``explicit_children`` children are
grouped under ``$$`` instead, which is the shape ``normalize_xml_data``
expects.
"""

import re
import xml.etree.ElementTree as ET
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

from ..exceptions import SrvError

XML_ATTRIBUTES = "$"
XML_SUBELEMENTS = "$$"
XML_TEXT = "_"
XML_TEXT_VALUE = "__TEXT_VALUE__"

XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"

_XML_CHAR_MAP = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
}
_XML_CHARS = re.compile("[&<>\"']")
_TRUE = re.compile(r"^\s*true\s*$", re.IGNORECASE)
_FALSE = re.compile(r"^\s*false\s*$", re.IGNORECASE)

_TEMPORAL = {
    "xsd:date": date.fromisoformat,
    "xsd:time": time.fromisoformat,
    "xsd:datetime": datetime.fromisoformat,
}


def escape_xml(text: Any) -> str:
    """Escape & < > " ' for use inside XML."""
    return _XML_CHARS.sub(lambda m: _XML_CHAR_MAP[m.group(0)], str(text))


def _local_name(tag: str) -> str:
    if tag.startswith("{"):
        uri, _, local = tag[1:].partition("}")
        return f"xsi:{local}" if uri == XSI_NAMESPACE else local
    return tag


def _add_child(target: dict[str, Any], key: str, value: Any) -> None:
    if key not in target:
        target[key] = value
    elif isinstance(target[key], list):
        target[key].append(value)
    else:
        target[key] = [target[key], value]


def element_to_dict(elem: ET.Element, explicit_children: bool = False) -> Any:
    """
    Convert an element to data.

    An element without attributes or children becomes its text.
    """
    text = "".join(
        [elem.text or "", *((child.tail or "") for child in elem)]
    )
    if not elem.attrib and len(elem) == 0:
        return text

    data: dict[str, Any] = {}
    if elem.attrib:
        data[XML_ATTRIBUTES] = {_local_name(k): v for k, v in elem.attrib.items()}
    if text.strip():
        data[XML_TEXT] = text
    if len(elem):
        children: dict[str, Any] = {}
        for child in elem:
            _add_child(
                children,
                _local_name(child.tag),
                element_to_dict(child, explicit_children),
            )
        if explicit_children:
            data[XML_SUBELEMENTS] = children
        else:
            data.update(children)
    return data


def parse_xml(text: str | bytes, explicit_children: bool = False) -> Any:
    """
    Parse an XML document, dropping the root element.

    Raises:
        xml.etree.ElementTree.ParseError: Malformed document
    """
    root = ET.fromstring(text)
    return element_to_dict(root, explicit_children)


def read_xml_file(path: str | Path) -> Any:
    """Read, parse and normalize an XML file."""
    try:
        data = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise SrvError(f"Error reading file '{path}'", cause=e) from e
    try:
        parsed = parse_xml(data, explicit_children=True)
    except ET.ParseError as e:
        raise SrvError("Error parsing XML data", cause=e) from e
    return normalize_xml_data(parsed)


def _concat(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "".join(_concat(v) for v in value)
    return str(value)


def _to_int(text: str) -> int | None:
    match = re.match(r"^\s*([-+]?\d+)", text)
    return int(match.group(1)) if match else None


def _to_float(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


def normalize_xml_data(obj: Any) -> Any:
    """
    Simplify parsed XML data.

    Honors ``xsi:nil`` and ``xsi:type`` (string, long, integer, int,
    double, float, date, time, datetime, boolean, List, Array, Object).
    An untyped object holding a single list is replaced by that list.
    """
    if obj is None:
        return None
    if isinstance(obj, str):
        if _TRUE.match(obj):
            return True
        if _FALSE.match(obj):
            return False
        return obj
    if not isinstance(obj, (dict, list)):
        return obj
    if isinstance(obj, list):
        return [normalize_xml_data(v) for v in obj]

    attributes = obj.get(XML_ATTRIBUTES) or {}
    if _TRUE.match(_concat(attributes.get("xsi:nil"))):
        return None
    xsi_type = _concat(attributes.get("xsi:type")) or "xsd:Object"
    text = _concat(obj.get(XML_TEXT))

    if xsi_type == "xsd:string":
        return text
    if xsi_type in ("xsd:long", "xsd:integer", "xsd:int"):
        return _to_int(text)
    if xsi_type in ("xsd:double", "xsd:float"):
        return _to_float(text)
    if xsi_type in _TEMPORAL:
        try:
            return _TEMPORAL[xsi_type](text.strip())
        except ValueError:
            return None
    if xsi_type == "xsd:boolean":
        return bool(_TRUE.match(text)) or text == "1"
    if xsi_type in ("xsd:List", "xsd:Array"):
        items: list[Any] = []
        for value in (obj.get(XML_SUBELEMENTS) or {}).values():
            elements = normalize_xml_data(value)
            if isinstance(elements, list):
                items.extend(elements)
            else:
                items.append(elements)
        return items

    ret: dict[str, Any] = {}
    for key, value in attributes.items():
        ret[key] = normalize_xml_data(value)
    for key, value in (obj.get(XML_SUBELEMENTS) or {}).items():
        ret[key] = normalize_xml_data(value)
    for key, value in obj.items():
        if key not in (XML_ATTRIBUTES, XML_SUBELEMENTS, XML_TEXT):
            ret[key] = normalize_xml_data(value)
    if obj.get(XML_TEXT):
        if ret:
            ret[XML_TEXT_VALUE] = obj[XML_TEXT]
        else:
            return obj[XML_TEXT]
    if len(ret) == 1:
        only = next(iter(ret.values()))
        if isinstance(only, list):
            return only
    return ret
