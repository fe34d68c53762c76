#!/usr/bin/env python3
"""
Reusable Value Report Generator for StructFuzz

Generates a formatted, Markdown-style report for any fuzz value: a Scapy-style
field listing, the Python repr, a hexdump and the base64 of the encoded bytes.
Can be used for crash logging, debug output, user export, etc.
"""
import base64
import logging
from typing import Any, Dict, List, Optional

from ..codec import Endianness, dump_hex
from ..fields import as_fuzz_type
from ..objects import FuzzEnum, FuzzStruct
from ..types import Invalid, Valid

logger = logging.getLogger(__name__)


def show_value(value: Any, indent: int = 0) -> str:
    """Field listing in the layout of Scapy's Packet.show()."""
    lines: List[str] = []
    _show(value, indent, lines)
    return "\n".join(lines)


def _show(value: Any, indent: int, lines: List[str], label: Optional[str] = None) -> None:
    pad = "  " * indent
    prefix = f"{pad}{label} = " if label else pad
    if isinstance(value, FuzzStruct):
        lines.append(f"{prefix}###[ {type(value).__name__} ]###")
        for name, item in value.fields().items():
            _show(item, indent + 1, lines, name)
    elif isinstance(value, FuzzEnum):
        lines.append(f"{prefix}{value!r} ({value.variant.value})")
        for i, item in enumerate(value.payload):
            _show(item, indent + 1, lines, f"[{i}]")
    elif isinstance(value, Valid):
        lines.append(f"{prefix}Valid({value.value!r})")
    elif isinstance(value, Invalid):
        lines.append(f"{prefix}Invalid({value.value})")
    elif isinstance(value, list) and any(isinstance(v, (FuzzStruct, FuzzEnum)) for v in value):
        lines.append(f"{prefix}[{len(value)} item(s)]")
        for i, item in enumerate(value):
            _show(item, indent + 1, lines, f"[{i}]")
    else:
        lines.append(f"{prefix}{value!r}")


def format_value_report(value: Any,
                        fuzz_type: Optional[Any] = None,
                        metadata: Optional[Dict[str, Any]] = None,
                        endianness: Endianness = Endianness.BIG) -> str:
    """
    Build the report text for one value.

    Args:
        value: Struct/enum instance, or a plain value when fuzz_type is given
        fuzz_type: Fuzz type of value; defaults to the value's own class
        metadata: Optional dict of metadata
        endianness: Byte order used for the hexdump and base64 sections

    Returns:
        Markdown-style report text
    """
    out: List[str] = ["# ==== VALUE REPORT ====", ""]
    if metadata:
        out.append("## METADATA")
        for k, v in metadata.items():
            out.append(f"- **{k}**: {v}")
        out.append("")

    fuzz_type = as_fuzz_type(fuzz_type if fuzz_type is not None else type(value))
    out.extend(["---", "", f"## VALUE DETAILS ({fuzz_type!r})", "```", show_value(value), "```", ""])
    out.extend(["---", "", "## PYTHON REPR", "```python", repr(value), "```", ""])

    raw = fuzz_type.to_bytes(value, endianness)
    out.extend(["---", "", f"## HEXDUMP ({len(raw)} bytes, {endianness.value} endian)", "```", dump_hex(raw), "```", ""])
    out.extend(["---", "", "## BASE64 RAW BYTES", "```", base64.b64encode(raw).decode(), "```", ""])
    return "\n".join(out)


def write_value_report(value: Any,
                       file_path: str,
                       mode: str = "a",
                       fuzz_type: Optional[Any] = None,
                       metadata: Optional[Dict[str, Any]] = None,
                       endianness: Endianness = Endianness.BIG) -> None:
    """
    Write a formatted value report to file. Accepts a single value or a list of values.
    Args:
        value: Value or list of values to report
        file_path: Path to output file
        mode: 'w' for write, 'a' for append
        fuzz_type: Fuzz type of the value(s), when they are not struct/enum instances
        metadata: Optional dict of metadata
        endianness: Byte order for the raw byte sections
    """
    if isinstance(value, (list, tuple)) and fuzz_type is None:
        for idx, item in enumerate(value):
            meta = dict(metadata) if metadata else {}
            meta["index"] = idx + 1
            write_value_report(item, file_path, mode=mode, metadata=meta, endianness=endianness)
            mode = "a"
        return
    with open(file_path, mode) as f:
        f.write(format_value_report(value, fuzz_type=fuzz_type, metadata=metadata, endianness=endianness))
        f.write("\n---\n\n")
    logger.debug(f"Wrote value report to {file_path}")
