"""Health check assets for validating the GDAL tile index tools."""

from dagster import asset, AssetExecutionContext

from ..resources import GDALResource

REQUIRED_VECTOR_FORMATS = ["GPKG", "FlatGeobuf"]


def _check_gdal(gdal: GDALResource, log) -> dict:
    """
    Core logic for the GDAL health check.

    Raises:
        RuntimeError: If any critical check fails.
    """
    results = {}

    # 1. Both tools resolvable on PATH
    missing = gdal.missing_tools()
    if missing:
        raise RuntimeError(f"Required command not found: {', '.join(missing)}")
    results["indexer_path"] = gdal.which(gdal.indexer_bin)
    results["merge_path"] = gdal.which(gdal.merge_bin)

    # 2. gdaltindex version
    res = gdal.run_raw_command([gdal.indexer_bin, "--version"])
    if not res.success:
        raise RuntimeError(f"gdaltindex check failed: {res.stderr}")
    indexer_version = res.stdout.strip()
    log.info(f"gdaltindex version: {indexer_version}")
    results["gdaltindex_version"] = indexer_version

    # 3. ogrmerge.py runs (it has no --version; --help exits 0 on recent GDAL)
    res = gdal.run_raw_command([gdal.merge_bin, "--help"])
    if res.return_code not in (0, 1) or "ogrmerge" not in (res.stdout + res.stderr):
        raise RuntimeError(f"ogrmerge.py check failed: {res.stderr}")
    log.info("ogrmerge.py available")

    # 4. Container and output drivers
    res = gdal.run_raw_command(["ogrinfo", "--formats"])
    if not res.success:
        raise RuntimeError(f"ogrinfo formats check failed: {res.stderr}")
    missing_formats = [fmt for fmt in REQUIRED_VECTOR_FORMATS if fmt not in res.stdout]
    if missing_formats:
        raise RuntimeError(
            f"Missing required vector formats: {missing_formats}\n"
            f"Available formats:\n{res.stdout}"
        )
    log.info(f"Required vector formats available: {REQUIRED_VECTOR_FORMATS}")
    results["vector_formats"] = REQUIRED_VECTOR_FORMATS

    log.info("GDAL Health Check Passed")
    return results


@asset(group_name="maintenance", compute_kind="gdal", required_resource_keys={"gdal"})
def gdal_health_check(context: AssetExecutionContext) -> dict:
    """
    Verify that the GDAL tile index tools are installed and usable.

    Checks:
    - gdaltindex and ogrmerge.py on PATH
    - gdaltindex version
    - ogrmerge.py starts
    - GPKG and FlatGeobuf drivers

    Returns:
        Dictionary with check results and versions.

    Raises:
        RuntimeError: If any critical check fails.
    """
    return _check_gdal(context.resources.gdal, context.log)
