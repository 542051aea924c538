"""Unit tests for GDAL Resource."""

from unittest.mock import patch, Mock
import subprocess
import pytest

from services.dagster.etl_pipelines.resources import GDALResource
from services.dagster.etl_pipelines.resources.gdal_resource import GDALResult


@pytest.fixture
def gdal_resource():
    """Create GDAL resource with test paths."""
    return GDALResource(
        gdal_data_path="/usr/share/gdal",
        proj_lib_path="/usr/share/proj",
    )


class TestGDALResourceGdaltindex:
    """Test suite for gdaltindex method."""

    def test_gdaltindex_command_construction(self, gdal_resource):
        """Test gdaltindex builds the optfile command."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = Mock(
                returncode=0,
                stdout="",
                stderr="",
            )

            result = gdal_resource.gdaltindex(
                output_path="/tmp/work/containers/batch_000000.gpkg",
                optfile="/tmp/work/batches/batch_000000",
            )

            called_cmd = mock_run.call_args[0][0]
            assert called_cmd == [
                "gdaltindex",
                "-f", "GPKG",
                "/tmp/work/containers/batch_000000.gpkg",
                "--optfile", "/tmp/work/batches/batch_000000",
            ]

            assert result.success is True
            assert result.return_code == 0
            assert result.output_path == "/tmp/work/containers/batch_000000.gpkg"

    def test_gdaltindex_custom_format(self, gdal_resource):
        """Test gdaltindex with a non-default container driver."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = Mock(returncode=0, stdout="", stderr="")

            gdal_resource.gdaltindex(
                output_path="/tmp/index.shp",
                optfile="/tmp/list",
                output_format="ESRI Shapefile",
            )

            called_cmd = mock_run.call_args[0][0]
            idx = called_cmd.index("-f")
            assert called_cmd[idx + 1] == "ESRI Shapefile"

    def test_gdaltindex_failure_not_tracked(self, gdal_resource):
        """Test that failed runs don't set output_path."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = Mock(
                returncode=1,
                stdout="",
                stderr="ERROR 4: missing.tif: No such file or directory",
            )

            result = gdal_resource.gdaltindex(
                output_path="/tmp/index.gpkg",
                optfile="/tmp/list",
            )

            assert result.success is False
            assert result.return_code == 1
            assert result.output_path is None
            assert "No such file" in result.stderr

    def test_custom_indexer_binary(self):
        """Test that indexer_bin replaces the executable."""
        gdal = GDALResource(indexer_bin="/opt/gdal/bin/gdaltindex")
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = Mock(returncode=0, stdout="", stderr="")

            gdal.gdaltindex(output_path="/tmp/i.gpkg", optfile="/tmp/list")

            assert mock_run.call_args[0][0][0] == "/opt/gdal/bin/gdaltindex"


class TestGDALResourceOgrmerge:
    """Test suite for ogrmerge method."""

    def test_ogrmerge_command_construction(self, gdal_resource):
        """Test ogrmerge builds single-layer FlatGeobuf command."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = Mock(returncode=0, stdout="", stderr="")

            result = gdal_resource.ogrmerge(
                input_paths=["/tmp/c/batch_000000.gpkg", "/tmp/c/batch_000001.gpkg"],
                output_path="/data/index.fgb",
            )

            called_cmd = mock_run.call_args[0][0]
            assert called_cmd == [
                "ogrmerge.py",
                "-progress",
                "-single",
                "-o", "/data/index.fgb",
                "-f", "FlatGeobuf",
                "/tmp/c/batch_000000.gpkg",
                "/tmp/c/batch_000001.gpkg",
            ]
            assert result.success is True
            assert result.output_path == "/data/index.fgb"

    def test_ogrmerge_without_progress_with_layer_name(self, gdal_resource):
        """Test optional ogrmerge flags."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = Mock(returncode=0, stdout="", stderr="")

            gdal_resource.ogrmerge(
                input_paths=["/tmp/a.gpkg"],
                output_path="/data/index.gpkg",
                output_format="GPKG",
                progress=False,
                layer_name="footprints",
            )

            called_cmd = mock_run.call_args[0][0]
            assert "-progress" not in called_cmd
            idx = called_cmd.index("-nln")
            assert called_cmd[idx + 1] == "footprints"
            idx = called_cmd.index("-f")
            assert called_cmd[idx + 1] == "GPKG"


class TestGDALResourceRunCommand:
    """Test suite for subprocess handling."""

    def test_environment_includes_gdal_paths(self, gdal_resource):
        """Test GDAL_DATA and PROJ_LIB are passed to the subprocess."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = Mock(returncode=0, stdout="", stderr="")

            gdal_resource.run_raw_command(["gdaltindex", "--version"])

            env = mock_run.call_args.kwargs["env"]
            assert env["GDAL_DATA"] == "/usr/share/gdal"
            assert env["PROJ_LIB"] == "/usr/share/proj"

    def test_no_timeout_by_default(self, gdal_resource):
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = Mock(returncode=0, stdout="", stderr="")

            gdal_resource.run_raw_command(["gdaltindex", "--version"])

            assert mock_run.call_args.kwargs["timeout"] is None

    def test_resource_timeout_applied(self):
        gdal = GDALResource(timeout_seconds=30)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = Mock(returncode=0, stdout="", stderr="")

            gdal.gdaltindex(output_path="/tmp/i.gpkg", optfile="/tmp/list")

            assert mock_run.call_args.kwargs["timeout"] == 30

    def test_call_timeout_overrides_resource(self):
        gdal = GDALResource(timeout_seconds=30)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = Mock(returncode=0, stdout="", stderr="")

            gdal.ogrmerge(input_paths=["/tmp/a.gpkg"], output_path="/tmp/o.fgb", timeout=5)

            assert mock_run.call_args.kwargs["timeout"] == 5

    def test_timeout_returns_failed_result(self, gdal_resource):
        """Test that a hung command becomes an unsuccessful result."""
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.TimeoutExpired(cmd=["gdaltindex"], timeout=5)

            result = gdal_resource.gdaltindex(
                output_path="/tmp/i.gpkg",
                optfile="/tmp/list",
                timeout=5,
            )

            assert result.success is False
            assert result.timed_out is True
            assert result.return_code == -1
            assert result.output_path is None

    def test_missing_binary_returns_failed_result(self, gdal_resource):
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = FileNotFoundError("No such file or directory: 'gdaltindex'")

            result = gdal_resource.gdaltindex(output_path="/tmp/i.gpkg", optfile="/tmp/list")

            assert result.success is False
            assert result.return_code == 127
            assert "gdaltindex" in result.stderr

    def test_undecodable_output_is_replaced(self, gdal_resource):
        """Test that non-UTF-8 bytes from a real subprocess do not raise."""
        result = gdal_resource.run_raw_command(
            ["sh", "-c", "printf 'ERROR 4: /data/caf\\351.tif\\n' >&2; exit 1"]
        )

        assert result.success is False
        assert result.return_code == 1
        assert "caf�.tif" in result.stderr

    def test_run_raw_command(self, gdal_resource):
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = Mock(
                returncode=0,
                stdout="GDAL 3.8.4, released 2024/02/08",
                stderr="",
            )

            result = gdal_resource.run_raw_command(["gdaltindex", "--version"])

            assert result.success is True
            assert "GDAL" in result.stdout
            assert result.output_path is None


class TestGDALResourceToolLookup:
    """Test suite for which / missing_tools."""

    def test_which_delegates_to_shutil(self, gdal_resource):
        with patch("shutil.which", return_value="/usr/bin/gdaltindex") as mock_which:
            assert gdal_resource.which("gdaltindex") == "/usr/bin/gdaltindex"
            mock_which.assert_called_once_with("gdaltindex")

    def test_missing_tools(self, gdal_resource):
        def fake_which(tool):
            return "/usr/bin/gdaltindex" if tool == "gdaltindex" else None

        with patch("shutil.which", side_effect=fake_which):
            assert gdal_resource.missing_tools() == ["ogrmerge.py"]


def test_gdal_result_defaults():
    result = GDALResult(success=True, command=["x"], stdout="", stderr="", return_code=0)
    assert result.output_path is None
    assert result.timed_out is False
