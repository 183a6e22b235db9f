"""
C Source Generation for Display Assets
======================================

Generates C definitions that embed converted frames into AVR firmware.
Data is placed in program memory (PROGMEM) and read with pgm_read_*.

Generated Symbols
-----------------
Keyframe / still image::

    const uint8_t nokia_gfx_keyframe[] PROGMEM = {
        0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
        ...
    };

Frame transition::

    const struct nokia_gfx_frame nokia_gfx_trans_x1_x2 PROGMEM = {
        .delay = 500,
        .diffcnt = 3,
        .diffs = {
            {  3, 0x20}, { 90, 0x07}, {503, 0xff},
        }
    };

Bytes and diff entries are emitted in buffer order (ascending address),
so the data can be copied straight into the controller memory or played
entry by entry.
"""

import logging
import re
from typing import NamedTuple, Sequence

from nokia_gfx.animation import Animation
from nokia_gfx.diff import FrameDiff
from nokia_gfx.errors import EmissionError
from nokia_gfx.layout import PageMajorBuffer

logger = logging.getLogger(__name__)

BYTES_PER_LINE = 8
DIFFS_PER_LINE = 4
INDENT = "    "

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

C_KEYWORDS = frozenset({
    "auto", "break", "case", "char", "const", "continue", "default", "do",
    "double", "else", "enum", "extern", "float", "for", "goto", "if", "int",
    "long", "register", "return", "short", "signed", "sizeof", "static",
    "struct", "switch", "typedef", "union", "unsigned", "void", "volatile",
    "while",
})

# Driver-side structure definitions shared by every animation header
STRUCT_DEFINITIONS = """\
struct nokia_gfx_diff {
    uint16_t addr;
    uint8_t data;
};

struct nokia_gfx_frame {
    uint16_t delay;
    uint16_t diffcnt;
    struct nokia_gfx_diff diffs[];
};
"""


class CodeFragment(NamedTuple):
    """Generated C code: definitions for the .c file and declarations for the .h file."""
    source: str
    header: str


def validate_identifier(name: str) -> str:
    """
    Check that name can be used as a C symbol.

    Raises:
        EmissionError: name is empty, malformed or a C keyword
    """
    if not IDENTIFIER_PATTERN.match(name or ""):
        raise EmissionError(f"'{name}' is not a valid C identifier")
    if name in C_KEYWORDS:
        raise EmissionError(f"'{name}' is a C keyword")
    return name


def _guard(name: str) -> str:
    return f"_{name.upper()}_H_"


# =============================================================================
# Single Definitions
# =============================================================================

def format_keyframe(name: str, buffer: PageMajorBuffer) -> CodeFragment:
    """
    Emit a full frame as a PROGMEM byte array.

    Args:
        name: C symbol name
        buffer: Frame in page-major order

    Returns:
        CodeFragment with the array definition and its extern declaration
    """
    validate_identifier(name)

    lines = [f"const uint8_t {name}[] PROGMEM = {{"]
    data = bytes(buffer)
    for start in range(0, len(data), BYTES_PER_LINE):
        chunk = data[start:start + BYTES_PER_LINE]
        lines.append(INDENT + " ".join(f"0x{b:02x}," for b in chunk))
    lines.append("};")

    return CodeFragment(
        source="\n".join(lines) + "\n",
        header=f"extern const uint8_t {name}[];\n",
    )


def format_frame_transition(name: str, frame_diff: FrameDiff) -> CodeFragment:
    """
    Emit a frame transition as a PROGMEM nokia_gfx_frame struct.

    Args:
        name: C symbol name
        frame_diff: Transition diff, already in ascending address order

    Returns:
        CodeFragment with the struct definition and its extern declaration
    """
    validate_identifier(name)

    lines = [
        f"const struct nokia_gfx_frame {name} PROGMEM = {{",
        f"{INDENT}.delay = {frame_diff.delay_ms},",
        f"{INDENT}.diffcnt = {len(frame_diff)},",
        f"{INDENT}.diffs = {{",
    ]
    entries = frame_diff.entries
    for start in range(0, len(entries), DIFFS_PER_LINE):
        chunk = entries[start:start + DIFFS_PER_LINE]
        lines.append(
            INDENT * 2 + " ".join(f"{{{e.address:3d}, 0x{e.value:02x}}}," for e in chunk)
        )
    lines.append(f"{INDENT}}}")
    lines.append("};")

    return CodeFragment(
        source="\n".join(lines) + "\n",
        header=f"extern const struct nokia_gfx_frame {name};\n",
    )


# =============================================================================
# Complete Files
# =============================================================================

def format_gfx_header(animation: Animation) -> str:
    """
    Emit the header declaring an animation's structures and symbols.

    Defines NOKIA_GFX_ANIMATION so the driver compiles its diff player,
    and <NAME>_FRAME_COUNT with the number of transitions.
    """
    name = validate_identifier(animation.name)
    count_macro = f"{name.upper()}_FRAME_COUNT"

    parts = [
        "/* Automatically generated by xbm2nokia */",
        f"#ifndef {_guard(name)}",
        f"#define {_guard(name)}",
        "",
        "#include <stdint.h>",
        "",
        "#define NOKIA_GFX_ANIMATION",
        "",
        STRUCT_DEFINITIONS,
        f"#define {count_macro} {len(animation.transitions)}",
        "",
        format_keyframe(animation.keyframe_name, animation.keyframe).header.rstrip(),
    ]
    for transition in animation.transitions:
        parts.append(format_frame_transition(transition.name, transition.diff).header.rstrip())
    parts.append(
        f"extern const struct nokia_gfx_frame *const {name}_frames[{count_macro}];"
    )
    parts.extend(["", "#endif", ""])
    return "\n".join(parts)


def format_animation_source(animation: Animation, header_name: str = "") -> str:
    """
    Emit the keyframe, every transition and the ordered frame table.

    Args:
        animation: Animation to emit
        header_name: File name of the matching header (default "<name>.h")
    """
    name = validate_identifier(animation.name)
    header_name = header_name or f"{name}.h"

    parts = [
        "/* Automatically generated by xbm2nokia */",
        "#include <stdint.h>",
        "#include <avr/pgmspace.h>",
        f'#include "{header_name}"',
        "",
        format_keyframe(animation.keyframe_name, animation.keyframe).source,
    ]
    for transition in animation.transitions:
        parts.append(format_frame_transition(transition.name, transition.diff).source)

    table = [
        f"const struct nokia_gfx_frame *const {name}_frames[{name.upper()}_FRAME_COUNT] = {{"
    ]
    table.extend(f"{INDENT}&{t.name}," for t in animation.transitions)
    table.append("};")
    parts.append("\n".join(table))

    logger.debug(
        "Emitted animation %s: %d transitions", name, len(animation.transitions)
    )
    return "\n".join(parts) + "\n"


def format_image_set(name: str, buffers: Sequence[PageMajorBuffer]) -> CodeFragment:
    """
    Emit still images shown one after another with full rewrites.

    Images are named <name>_x1 ... <name>_xN; <NAME>_COUNT holds N and
    <name>_images[] lists them in order.
    """
    validate_identifier(name)
    if not buffers:
        raise EmissionError("image set is empty")

    count_macro = f"{name.upper()}_COUNT"
    fragments = [format_keyframe(f"{name}_x{i}", b) for i, b in enumerate(buffers, start=1)]

    header = [
        "/* Automatically generated by xbm2nokia */",
        f"#ifndef {_guard(name)}",
        f"#define {_guard(name)}",
        "",
        "#include <stdint.h>",
        "",
        f"#define {count_macro} {len(buffers)}",
        "",
    ]
    header.extend(f.header.rstrip() for f in fragments)
    header.append(f"extern const uint8_t *const {name}_images[{count_macro}];")
    header.extend(["", "#endif", ""])

    source = [
        "/* Automatically generated by xbm2nokia */",
        "#include <stdint.h>",
        "#include <avr/pgmspace.h>",
        f'#include "{name}.h"',
        "",
    ]
    source.extend(f.source for f in fragments)
    table = [f"const uint8_t *const {name}_images[{count_macro}] = {{"]
    table.extend(f"{INDENT}{name}_x{i}," for i in range(1, len(buffers) + 1))
    table.append("};")
    source.append("\n".join(table))

    return CodeFragment(source="\n".join(source) + "\n", header="\n".join(header))
