"""Dockerfile parsing.

Wraps dockerfile-parse and turns its instruction structure into
FromInstruction objects carrying the exact span of each base image name.
"""

import io
import re
from typing import Dict, List, Optional, Tuple

from dockerfile_parse import DockerfileParser

from ..models import FromInstruction, SourceRange
from ..utils.logging import get_logger

logger = get_logger(__name__)

_ARG_REF_RE = re.compile(r"\$(?:\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)\}|(?P<plain>[A-Za-z_][A-Za-z0-9_]*))")


def _split_from_value(value: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """
    Split the argument of a FROM instruction.

    Args:
        value: e.g. ``--platform=linux/amd64 quay.io/org/app:1 AS build``

    Returns:
        Tuple of (image, stage alias, platform flag)
    """
    image = None
    stage = None
    platform = None
    tokens = value.split()
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if image is None and token.startswith("--"):
            if token.startswith("--platform="):
                platform = token.split("=", 1)[1]
        elif image is None:
            image = token
        elif token.lower() == "as" and index + 1 < len(tokens):
            stage = tokens[index + 1]
            break
        index += 1
    return image, stage, platform


def _substitute_args(image: str, args: Dict[str, str]) -> str:
    """Expand ``$NAME``/``${NAME}`` using global ARG defaults."""
    def replace(match: "re.Match") -> str:
        name = match.group("braced") or match.group("plain")
        return args.get(name, match.group(0))

    return _ARG_REF_RE.sub(replace, image)


def _locate(lines: List[str], token: str, start_line: int, end_line: int) -> SourceRange:
    """Find the span of token inside the lines of one instruction."""
    pattern = re.compile(r"(?<!\S)" + re.escape(token) + r"(?!\S)")
    for line_no in range(start_line, min(end_line, len(lines) - 1) + 1):
        line = lines[line_no]
        offset = 0
        if line_no == start_line:
            keyword = re.match(r"\s*from\b", line, re.IGNORECASE)
            offset = keyword.end() if keyword else 0
        match = pattern.search(line, offset)
        if match:
            return SourceRange(line_no, match.start(), line_no, match.end())

    line = lines[start_line] if start_line < len(lines) else ""
    return SourceRange(start_line, 0, start_line, len(line.rstrip("\r")))


def parse_from_instructions(text: str) -> List[FromInstruction]:
    """
    Extract every FROM instruction from Dockerfile text.

    ARG defaults declared before the first FROM are expanded in image
    names; the returned range always points at the text as written.

    Args:
        text: Dockerfile content

    Returns:
        FromInstructions in file order
    """
    parser = DockerfileParser(
        fileobj=io.BytesIO(text.encode("utf-8")),
        env_replace=False,
    )
    lines = text.split("\n")

    global_args: Dict[str, str] = {}
    instructions: List[FromInstruction] = []
    seen_from = False

    for entry in parser.structure:
        name = entry["instruction"].upper()

        if name == "ARG" and not seen_from:
            arg = entry["value"].strip()
            if "=" in arg:
                key, default = arg.split("=", 1)
                global_args[key.strip()] = default.strip().strip("\"'")
            continue

        if name != "FROM":
            continue
        seen_from = True

        raw_image, stage, platform = _split_from_value(entry["value"])
        if not raw_image:
            logger.debug(f"FROM without image on line {entry['startline'] + 1}")
            continue

        source_range = _locate(lines, raw_image, entry["startline"], entry["endline"])
        instructions.append(FromInstruction(
            image=_substitute_args(raw_image, global_args),
            range=source_range,
            stage=stage,
            platform=platform,
        ))

    logger.debug(f"Found {len(instructions)} FROM instruction(s)")
    return instructions


def base_images(instructions: List[FromInstruction]) -> List[FromInstruction]:
    """
    Drop FROM lines that do not name a real image.

    ``scratch`` and references to an earlier build stage are removed.
    """
    stages = set()
    result = []
    for instruction in instructions:
        image = instruction.image.lower()
        if image != "scratch" and image not in stages:
            result.append(instruction)
        if instruction.stage:
            stages.add(instruction.stage.lower())
    return result
