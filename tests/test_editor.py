"""
Tests for editor invocation.
"""

from unittest.mock import Mock, patch

import pytest

from cfnupd.editor import launch_editor
from cfnupd.errors import EditorInvocationError


class TestLaunchEditor:
    """Test launching the editor subprocess."""

    def test_passes_path_as_last_argument(self, tmp_path):
        """Test the editor gets the file path as its argument."""
        target = tmp_path / "web-app.yaml"

        with patch("subprocess.run", return_value=Mock(returncode=0)) as mock_run:
            launch_editor("vim", target)

        mock_run.assert_called_once_with(["vim", str(target)], check=False)

    def test_editor_with_arguments(self, tmp_path):
        """Test editor commands with flags are split."""
        target = tmp_path / "parameters.json"

        with patch("subprocess.run", return_value=Mock(returncode=0)) as mock_run:
            launch_editor("code --wait", target)

        assert mock_run.call_args[0][0] == ["code", "--wait", str(target)]

    def test_nonzero_exit(self, tmp_path):
        """Test a failing editor raises EditorInvocationError."""
        with patch("subprocess.run", return_value=Mock(returncode=1)):
            with pytest.raises(EditorInvocationError, match="exited with code 1"):
                launch_editor("vim", tmp_path / "web-app.yaml")

    def test_missing_editor(self, tmp_path):
        """Test an editor that cannot be found raises EditorInvocationError."""
        with patch("subprocess.run", side_effect=FileNotFoundError("no such file")):
            with pytest.raises(EditorInvocationError, match="Unable to launch"):
                launch_editor("not-an-editor", tmp_path / "web-app.yaml")

    def test_unbalanced_quotes(self, tmp_path):
        """Test an unparsable editor command raises EditorInvocationError."""
        with pytest.raises(EditorInvocationError):
            launch_editor('vim "--oops', tmp_path / "web-app.yaml")
