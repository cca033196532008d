"""Package file validation and platform dispatch utilities."""

from pathlib import Path, PurePath

from appsentinel.exceptions import SentinelError, UnsupportedPackageError
from appsentinel.models.facts import Platform

# ZIP file magic header (APKs and IPAs are ZIP files)
ZIP_FILE_HEADER = b"PK\x03\x04"

PACKAGE_EXTENSIONS: dict[str, Platform] = {
    ".apk": Platform.ANDROID,
    ".ipa": Platform.IOS,
}


def platform_for_filename(filename: str) -> Platform:
    """Determine the target platform from a package filename.

    Raises:
        UnsupportedPackageError: If the extension is not .apk or .ipa.
    """
    suffix = PurePath(filename).suffix.lower()
    try:
        return PACKAGE_EXTENSIONS[suffix]
    except KeyError:
        raise UnsupportedPackageError(filename) from None


def validate_package_path(
    package_path: Path,
    *,
    require_zip_header: bool = False,
    error_cls: type[SentinelError] = SentinelError,
) -> Platform:
    """Validate that a package file path is usable and return its platform.

    Performs the following checks:
    - File exists
    - Path is a file (not a directory)
    - File has .apk or .ipa extension
    - Optionally: file starts with ZIP magic header

    Args:
        package_path: Path to the APK or IPA file to validate.
        require_zip_header: If True, also verify the file starts with ZIP header.
        error_cls: Exception class to raise on validation failure.

    Raises:
        SentinelError (or subclass): If validation fails.
    """
    if not package_path.exists():
        raise error_cls(f"Package not found: {package_path}")

    if not package_path.is_file():
        raise error_cls(f"Not a file: {package_path}")

    platform = platform_for_filename(package_path.name)

    if require_zip_header:
        try:
            with package_path.open("rb") as f:
                header = f.read(4)
        except OSError as e:
            raise error_cls(f"Failed to read package header: {e}") from e

        if len(header) < len(ZIP_FILE_HEADER):
            raise error_cls("File is too small to be a valid package")

        if header != ZIP_FILE_HEADER:
            raise error_cls(
                f"Header mismatch. Expected: {ZIP_FILE_HEADER!r}, got: {header!r}"
            )

    return platform
