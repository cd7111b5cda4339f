"""
CPE platform identifier parsing.
"""

from __future__ import annotations

import string
from typing import Dict, List, Optional

from cpe import CPE as FormattedCPE

from .errors import MalformedIdentifier
from .interfaces import Unbinder
from .models import CPE, CVEItem


CPE_PREFIX = "cpe:"
FORMATTED_STRING_PREFIX = "cpe:2.3:"

# Well-formed name attribute -> accessor on the cpe library object.
_WFN_ACCESSORS = {
    "part": "get_part",
    "vendor": "get_vendor",
    "product": "get_product",
    "version": "get_version",
    "update": "get_update",
    "edition": "get_edition",
    "language": "get_language",
    "sw_edition": "get_software_edition",
    "target_sw": "get_target_software",
    "target_hw": "get_target_hardware",
    "other": "get_other",
}

_LOGICAL_VALUES = {"*": "ANY", "-": "NA", "ANY": "ANY", "NA": "NA"}

# Characters a well-formed name value never quotes; "*" and "?" are wildcards.
_UNQUOTED = frozenset(string.ascii_letters + string.digits + "_*?")


def add_quoting(value: str) -> str:
    """Quote a formatted string value the way a well-formed name stores it.

    Every character other than an ASCII letter, digit, underscore or
    wildcard gets a backslash. Characters already escaped are copied as is,
    so ``sp-1`` becomes ``sp\\-1`` and ``sp\\-1`` stays unchanged.
    """
    quoted = []
    chars = iter(value)
    for char in chars:
        if char == "\\":
            quoted.append(char + next(chars, ""))
        elif char in _UNQUOTED:
            quoted.append(char)
        else:
            quoted.append("\\" + char)
    return "".join(quoted)


def unbind_fs(formatted: str) -> Dict[str, str]:
    """Unbind a CPE 2.3 formatted string into well-formed name attributes.

    ``*`` and ``-`` become the logical values ``ANY`` and ``NA``; every other
    value is quoted with :func:`add_quoting`.

    Raises:
        ValueError: The string is not a CPE 2.3 formatted string, or the
            cpe library rejected it
    """
    if not formatted.startswith(FORMATTED_STRING_PREFIX):
        raise ValueError(
            f"{formatted!r} is not a formatted string binding ({FORMATTED_STRING_PREFIX!r})"
        )

    parsed = FormattedCPE(formatted)
    attributes = {}
    for name, accessor in _WFN_ACCESSORS.items():
        values = getattr(parsed, accessor)()
        value = values[0] if values and values[0] else ""
        if value in _LOGICAL_VALUES:
            attributes[name] = _LOGICAL_VALUES[value]
        else:
            attributes[name] = add_quoting(value)
    return attributes


def remove_quoting(value: str) -> str:
    # Quoting rules are in section 5.3.2 of NISTIR 7695.
    return value.replace("\\", "")


def parse_cpe(formatted: str, unbind: Optional[Unbinder] = None) -> CPE:
    """Parse a well-formed CPE string.

    Args:
        formatted: CPE string such as ``cpe:2.3:a:vendor:product:1.0:*:*:*:*:*:*:*``
        unbind: Unbinding function; defaults to :func:`unbind_fs`

    Returns:
        The decomposed identifier

    Raises:
        MalformedIdentifier: Missing ``cpe:`` prefix or unbinding failed
    """
    if not formatted.startswith(CPE_PREFIX):
        raise MalformedIdentifier(
            f"{formatted!r} does not have expected {CPE_PREFIX!r} prefix"
        )

    unbind = unbind or unbind_fs
    try:
        wfn = unbind(formatted)
    except Exception as e:
        raise MalformedIdentifier(f"{formatted!r} could not be unbound: {e}") from e

    return CPE(
        cpe_version=formatted.split(":")[1],
        part=wfn.get("part", ""),
        vendor=remove_quoting(wfn.get("vendor", "")),
        product=remove_quoting(wfn.get("product", "")),
        version=remove_quoting(wfn.get("version", "")),
        update=wfn.get("update", ""),
        edition=wfn.get("edition", ""),
        language=wfn.get("language", ""),
        sw_edition=wfn.get("sw_edition", ""),
        target_sw=wfn.get("target_sw", ""),
        target_hw=wfn.get("target_hw", ""),
        other=wfn.get("other", ""),
    )


def cpes(cve: CVEItem) -> List[str]:
    """List the CPE strings of every matcher entry in a record."""
    return [
        match.cpe23_uri
        for node in cve.nodes
        for match in node.cpe_match
        if match.cpe23_uri
    ]
