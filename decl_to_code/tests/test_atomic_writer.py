#!/usr/bin/env python3
"""
Tests for the atomic writer.
"""

import tempfile
from pathlib import Path

import pytest

from decl_to_code.pipeline import AtomicWriter, OutputConfig, OutputMode, OutputValidationError


class TestAtomicWriter:
    """Test atomic file writes."""

    def test_write_creates_file(self):
        """Test basic file writing."""
        writer = AtomicWriter()

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "pkg" / "output.py"
            code = "from __future__ import annotations\n\n\nclass Person:\n    pass\n"
            writer.write(path, code, "python")

            assert path.read_text() == code
            assert [p.name for p in path.parent.iterdir()] == ["output.py"]

    def test_invalid_python_is_not_written(self):
        """Test that a failed validation leaves nothing behind."""
        writer = AtomicWriter()

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "output.py"

            with pytest.raises(OutputValidationError, match="output.py"):
                writer.write(path, "class Broken(", "python")

            assert not path.exists()
            assert list(Path(tmpdir).iterdir()) == []

    def test_failed_write_keeps_existing_content(self):
        writer = AtomicWriter()

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "schema.graphql"
            path.write_text("type A {\n}\n")

            with pytest.raises(OutputValidationError, match="unbalanced braces"):
                writer.write(path, "type A {\n", "graphql")

            assert path.read_text() == "type A {\n}\n"

    def test_braces_in_strings_and_comments_are_ignored(self):
        writer = AtomicWriter()
        content = '// {\n/** } */\nconst string OPEN = "{"\nstruct A {\n}\n'

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "a.thrift"
            writer.write(path, content, "thrift")
            assert path.read_text() == content

    def test_write_without_validation(self):
        writer = AtomicWriter()

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "output.py"
            writer.write(path, "class Broken(", "python", validate=False)
            assert path.read_text() == "class Broken("

    def test_custom_validator(self):
        def reject_everything(content):
            raise OutputValidationError("rejected")

        writer = AtomicWriter(validators={"thrift": reject_everything})

        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(OutputValidationError, match="rejected"):
                writer.write(Path(tmpdir) / "a.thrift", "struct A {\n}\n", "thrift")

    def test_write_if_not_exists(self):
        writer = AtomicWriter()

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "existing.py"
            path.write_text("existing content")

            with pytest.raises(FileExistsError, match="Use force mode to overwrite"):
                writer.write_if_not_exists(path, "x = 1\n", "python")

            assert writer.write_if_not_exists(Path(tmpdir) / "new.py", "x = 1\n", "python")


class TestWriteAll:
    """Test writing every file of a job."""

    FILES = {"models/user.py": "x = 1\n", "models/address.py": "y = 2\n"}

    def test_writes_relative_paths(self):
        writer = AtomicWriter()

        with tempfile.TemporaryDirectory() as tmpdir:
            written = writer.write_all(Path(tmpdir), self.FILES, "python", OutputConfig())

            assert written == [Path(tmpdir) / "models/user.py", Path(tmpdir) / "models/address.py"]
            assert (Path(tmpdir) / "models/address.py").read_text() == "y = 2\n"

    def test_existing_file_aborts_before_writing(self):
        writer = AtomicWriter()

        with tempfile.TemporaryDirectory() as tmpdir:
            existing = Path(tmpdir) / "models" / "address.py"
            existing.parent.mkdir()
            existing.write_text("old")

            with pytest.raises(FileExistsError):
                writer.write_all(Path(tmpdir), self.FILES, "python", OutputConfig())

            assert not (Path(tmpdir) / "models/user.py").exists()
            assert existing.read_text() == "old"

    def test_force_overwrites(self):
        writer = AtomicWriter()

        with tempfile.TemporaryDirectory() as tmpdir:
            existing = Path(tmpdir) / "models" / "address.py"
            existing.parent.mkdir()
            existing.write_text("old")

            writer.write_all(Path(tmpdir), self.FILES, "python", OutputConfig(mode=OutputMode.FORCE))
            assert existing.read_text() == "y = 2\n"

    def test_non_atomic_write_still_validates(self):
        writer = AtomicWriter()
        config = OutputConfig(atomic_write=False)

        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(OutputValidationError):
                writer.write_all(Path(tmpdir), {"bad.py": "def ("}, "python", config)
            assert not (Path(tmpdir) / "bad.py").exists()

            writer.write_all(Path(tmpdir), {"good.py": "x = 1\n"}, "python", config)
            assert (Path(tmpdir) / "good.py").read_text() == "x = 1\n"


if __name__ == "__main__":
    pytest.main([__file__])
