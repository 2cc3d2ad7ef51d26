"""
Tests for local artifact staging.
"""

import json
import re
from pathlib import Path
from unittest.mock import patch

import pytest

from cfnupd.cloudformation.artifacts import (
    ArtifactSet,
    allocate_scratch,
    persist,
    read_artifacts,
    write_artifacts,
)
from cfnupd.cloudformation.parameters import ParameterRecord
from cfnupd.errors import (
    ArtifactCopyError,
    ArtifactReadError,
    ArtifactWriteError,
    DirectoryCreateError,
    MalformedParameterDataError,
)


class TestAllocateScratch:
    """Test scratch directory allocation."""

    def test_creates_directory_with_random_suffix(self, tmp_path: Path) -> None:
        """Test the scratch directory exists and is named after the stack."""
        artifacts = allocate_scratch("web-app", base_dir=tmp_path)

        assert artifacts.directory.is_dir()
        assert artifacts.directory.parent == tmp_path
        assert re.fullmatch(r"web-app-[A-Za-z0-9]{10}", artifacts.directory.name)

    def test_paths_are_not_populated(self, tmp_path: Path) -> None:
        """Test artifact paths point into the directory without creating files."""
        artifacts = allocate_scratch("web-app", base_dir=tmp_path)

        assert artifacts.template_path == artifacts.directory / "web-app.yaml"
        assert artifacts.parameters_path == artifacts.directory / "parameters.json"
        assert not artifacts.template_path.exists()
        assert not artifacts.parameters_path.exists()

    def test_two_calls_never_share_a_directory(self, tmp_path: Path) -> None:
        """Test repeated allocation for the same stack gives distinct paths."""
        directories = {
            allocate_scratch("web-app", base_dir=tmp_path).directory for _ in range(20)
        }

        assert len(directories) == 20

    def test_defaults_to_system_temp_dir(self, tmp_path: Path) -> None:
        """Test the system temp directory is used when no base is given."""
        with patch("tempfile.gettempdir", return_value=str(tmp_path)):
            artifacts = allocate_scratch("web-app")

        assert artifacts.directory.parent == tmp_path

    def test_create_failure(self, tmp_path: Path) -> None:
        """Test an unusable parent directory raises DirectoryCreateError."""
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(DirectoryCreateError):
            allocate_scratch("web-app", base_dir=blocker)


class TestWriteRead:
    """Test staging and reading back artifacts."""

    def test_write_then_read(self, tmp_path: Path) -> None:
        """Test the template is byte exact and parameters decode."""
        artifacts = allocate_scratch("web-app", base_dir=tmp_path)
        template = "Resources: {}\r\n# trailing\n"
        parameters = [ParameterRecord("InstanceType", "t3.micro", False, "N/A")]

        write_artifacts(artifacts, template, parameters)
        template_body, records = read_artifacts(artifacts)

        assert artifacts.template_path.read_bytes() == template.encode("utf-8")
        assert template_body == template
        assert records == parameters
        assert json.loads(artifacts.parameters_path.read_text())[0][
            "parameter_key"
        ] == "InstanceType"

    def test_read_strips_byte_order_mark(self, tmp_path: Path) -> None:
        """Test a BOM added by the editor is not submitted with the template."""
        artifacts = allocate_scratch("web-app", base_dir=tmp_path)
        write_artifacts(artifacts, "Resources: {}", [])
        artifacts.template_path.write_bytes(b"\xef\xbb\xbfResources: {}\n")

        template_body, _ = read_artifacts(artifacts)

        assert template_body == "Resources: {}\n"

    def test_write_failure(self, tmp_path: Path) -> None:
        """Test a missing scratch directory raises ArtifactWriteError."""
        artifacts = ArtifactSet.in_directory(tmp_path / "missing", "web-app")

        with pytest.raises(ArtifactWriteError):
            write_artifacts(artifacts, "Resources: {}", [])

    def test_read_missing_files(self, tmp_path: Path) -> None:
        """Test unreadable artifacts raise ArtifactReadError."""
        artifacts = allocate_scratch("web-app", base_dir=tmp_path)

        with pytest.raises(ArtifactReadError):
            read_artifacts(artifacts)

    def test_read_malformed_parameters(self, tmp_path: Path) -> None:
        """Test broken parameter edits surface as MalformedParameterDataError."""
        artifacts = allocate_scratch("web-app", base_dir=tmp_path)
        write_artifacts(artifacts, "Resources: {}", [])
        artifacts.parameters_path.write_text("[{oops")

        with pytest.raises(MalformedParameterDataError):
            read_artifacts(artifacts)


class TestPersist:
    """Test copying artifacts to a stack named directory."""

    @pytest.fixture
    def staged(self, tmp_path: Path) -> ArtifactSet:
        artifacts = allocate_scratch("web-app", base_dir=tmp_path / "scratch")
        write_artifacts(
            artifacts,
            "Resources: {}",
            [ParameterRecord("InstanceType", "t3.micro", False, "N/A")],
        )
        return artifacts

    def test_copies_both_files(self, staged: ArtifactSet, tmp_path: Path) -> None:
        """Test both files land in <root>/<stack_name>/ with their names."""
        saved = persist(staged, "web-app", target_root=tmp_path / "out")

        assert saved.directory == tmp_path / "out" / "web-app"
        assert (saved.directory / "web-app.yaml").read_text() == "Resources: {}"
        assert (saved.directory / "parameters.json").read_bytes() == (
            staged.parameters_path.read_bytes()
        )

    def test_defaults_to_cwd(
        self, staged: ArtifactSet, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test the current working directory is used by default."""
        monkeypatch.chdir(tmp_path)

        saved = persist(staged, "web-app")

        assert saved.template_path == Path.cwd() / "web-app" / "web-app.yaml"
        assert saved.template_path.exists()

    def test_existing_directory_is_reused(
        self, staged: ArtifactSet, tmp_path: Path
    ) -> None:
        """Test persisting twice overwrites the earlier copy."""
        persist(staged, "web-app", target_root=tmp_path)
        staged.template_path.write_text("Resources: {Changed: true}")

        saved = persist(staged, "web-app", target_root=tmp_path)

        assert saved.template_path.read_text() == "Resources: {Changed: true}"

    def test_copy_failure_names_file_and_keeps_prior_copy(
        self, staged: ArtifactSet, tmp_path: Path
    ) -> None:
        """Test a failed parameters copy leaves the template copy in place."""
        staged.parameters_path.unlink()

        with pytest.raises(ArtifactCopyError) as exc_info:
            persist(staged, "web-app", target_root=tmp_path)

        assert exc_info.value.path == staged.parameters_path
        assert "parameters.json" in str(exc_info.value)
        assert (tmp_path / "web-app" / "web-app.yaml").exists()

    def test_directory_create_failure(
        self, staged: ArtifactSet, tmp_path: Path
    ) -> None:
        """Test a file in the way of the target directory is reported."""
        (tmp_path / "web-app").write_text("in the way")

        with pytest.raises(DirectoryCreateError):
            persist(staged, "web-app", target_root=tmp_path)
