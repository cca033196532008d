"""Package analysis: dispatch an APK or IPA through extraction and scoring."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from appsentinel.core.artifacts import extract_android_artifacts, extract_ios_artifacts
from appsentinel.core.container import open_container
from appsentinel.core.descriptor import extract_manifest, extract_plist
from appsentinel.core.normalizer import build_android_facts, build_ios_facts
from appsentinel.core.rules import RuleEngine
from appsentinel.exceptions import AnalysisError
from appsentinel.models.facts import PackageFacts, Platform
from appsentinel.models.report import AnalysisResult
from appsentinel.models.rules import RuleSet
from appsentinel.utils.package import platform_for_filename, validate_package_path

logger = logging.getLogger(__name__)


class PackageAnalyzer:
    """Analyze mobile packages without executing them."""

    def __init__(self, rules: RuleSet | None = None):
        """Initialize package analyzer.

        Args:
            rules: Rule table for scoring. Defaults to the built-in table.
        """
        self.engine = RuleEngine(rules)

    def collect_facts(
        self, data: bytes, platform: Platform, size_hint: int | None = None
    ) -> PackageFacts:
        """Open the package and extract its facts for the given platform.

        Raises:
            ArchiveError: If the data is not a valid ZIP archive.
            DescriptorMissingError: If the platform descriptor is absent.
        """
        size_bytes = size_hint if size_hint is not None else len(data)

        with open_container(data) as container:
            if platform == Platform.ANDROID:
                manifest = extract_manifest(container)
                artifacts = extract_android_artifacts(container)
                return build_android_facts(manifest, artifacts, size_bytes)

            plist = extract_plist(container)
            artifacts = extract_ios_artifacts(container)
            return build_ios_facts(plist, artifacts, size_bytes)

    def analyze(
        self, data: bytes, filename: str, size_hint: int | None = None
    ) -> AnalysisResult:
        """Analyze package bytes and return the risk assessment.

        Args:
            data: Raw package bytes.
            filename: Original filename; its extension selects the platform.
            size_hint: Original package size. Defaults to ``len(data)``.

        Raises:
            AnalysisError: If the package cannot be analyzed.
        """
        platform = platform_for_filename(filename)
        logger.info("Analyzing %s as %s package", filename, platform.value)

        facts = self.collect_facts(data, platform, size_hint)
        result = self.engine.evaluate(facts)

        logger.info(
            "%s: score %d (%s), %d finding(s)",
            filename,
            result.score,
            result.level.value,
            result.summary.total,
        )
        return result

    def analyze_path(
        self, package_path: Path, *, require_zip_header: bool = False
    ) -> AnalysisResult:
        """Read a package file from disk and analyze it.

        Args:
            package_path: Path to the .apk or .ipa file.
            require_zip_header: If True, reject files without a ZIP header.

        Raises:
            AnalysisError: If the file is invalid or cannot be analyzed.
        """
        package_path = package_path.resolve()
        validate_package_path(
            package_path,
            require_zip_header=require_zip_header,
            error_cls=AnalysisError,
        )

        try:
            data = package_path.read_bytes()
        except OSError as e:
            raise AnalysisError(f"Failed to read package: {e}") from e

        return self.analyze(data, package_path.name, size_hint=len(data))


def analyze_package(
    data: bytes,
    filename: str,
    size_hint: int | None = None,
    *,
    rules: RuleSet | None = None,
) -> AnalysisResult:
    """Analyze package bytes with a one-off analyzer."""
    return PackageAnalyzer(rules).analyze(data, filename, size_hint)


async def analyze_package_async(
    data: bytes,
    filename: str,
    size_hint: int | None = None,
    *,
    rules: RuleSet | None = None,
) -> AnalysisResult:
    """Run :func:`analyze_package` in a worker thread.

    Callers can wrap this in ``asyncio.wait_for`` to stop waiting after a timeout.
    """
    return await asyncio.to_thread(
        analyze_package, data, filename, size_hint, rules=rules
    )
