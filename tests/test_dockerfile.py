"""Unit tests for basescan/core/dockerfile.py"""

from basescan.core.dockerfile import base_images, parse_from_instructions
from basescan.models import SourceRange

from conftest import SAMPLE_DOCKERFILE


class TestParseFromInstructions:
    """Tests for parse_from_instructions"""

    def test_one_instruction_per_from_line(self):
        """Test every FROM line yields exactly one instruction, in order"""
        instructions = parse_from_instructions(SAMPLE_DOCKERFILE)
        assert [i.image for i in instructions] == [
            "quay.io/org/builder:2.1",
            "docker.io/library/alpine:3.19",
            "quay.io/org/runtime:1.0",
        ]
        assert [i.line for i in instructions] == [1, 4, 7]

    def test_range_covers_image_token(self):
        """Test the range spans exactly the image name"""
        instructions = parse_from_instructions("FROM quay.io/org/app:1.0 AS build\n")
        assert instructions[0].range == SourceRange(0, 5, 0, 24)

    def test_stage_alias_and_platform(self):
        """Test --platform and AS are split off the image"""
        text = "FROM --platform=linux/arm64 quay.io/org/app:1.0 as builder\n"
        instruction = parse_from_instructions(text)[0]
        assert instruction.image == "quay.io/org/app:1.0"
        assert instruction.stage == "builder"
        assert instruction.platform == "linux/arm64"
        assert instruction.range.start_column == len("FROM --platform=linux/arm64 ")

    def test_lowercase_keyword_and_indentation(self):
        """Test lowercase from and leading whitespace"""
        instruction = parse_from_instructions("  from quay.io/org/app\n")[0]
        assert instruction.image == "quay.io/org/app"
        assert instruction.range == SourceRange(0, 7, 0, 22)

    def test_line_continuation(self):
        """Test an image on a continuation line is located on that line"""
        text = "FROM \\\n    quay.io/org/app:1.0\nRUN true\n"
        instruction = parse_from_instructions(text)[0]
        assert instruction.image == "quay.io/org/app:1.0"
        assert instruction.range == SourceRange(1, 4, 1, 23)

    def test_global_arg_substitution(self):
        """Test ARG defaults before the first FROM are expanded"""
        text = "ARG TAG=2.0\nFROM quay.io/org/app:${TAG}\n"
        instruction = parse_from_instructions(text)[0]
        assert instruction.image == "quay.io/org/app:2.0"
        assert instruction.range == SourceRange(1, 5, 1, 5 + len("quay.io/org/app:${TAG}"))

    def test_unknown_arg_left_untouched(self):
        """Test unresolved ARG references stay as written"""
        instruction = parse_from_instructions("FROM quay.io/org/app:$VERSION\n")[0]
        assert instruction.image == "quay.io/org/app:$VERSION"

    def test_no_from_lines(self):
        """Test a Dockerfile without FROM yields nothing"""
        assert parse_from_instructions("RUN echo hi\n") == []
        assert parse_from_instructions("") == []


class TestBaseImages:
    """Tests for base_images"""

    def test_drops_scratch_and_stage_references(self):
        """Test scratch and earlier stage aliases are not base images"""
        text = (
            "FROM quay.io/org/builder:1 AS build\n"
            "FROM build AS test\n"
            "FROM scratch\n"
            "FROM quay.io/org/runtime:1\n"
        )
        images = [i.image for i in base_images(parse_from_instructions(text))]
        assert images == ["quay.io/org/builder:1", "quay.io/org/runtime:1"]

    def test_stage_name_not_yet_defined_is_kept(self):
        """Test a name only matches stages declared earlier"""
        text = "FROM app\nFROM quay.io/org/app:1 AS app\n"
        images = [i.image for i in base_images(parse_from_instructions(text))]
        assert images == ["app", "quay.io/org/app:1"]
