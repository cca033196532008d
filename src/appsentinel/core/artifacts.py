"""Collect auxiliary artifacts (strings, layouts, native code, network policy).

Each extractor makes one pass over the container entries in archive
order. A failure to read a single artifact is logged and recorded as an
:class:`ExtractionWarning`; it never aborts the scan.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from appsentinel.core.container import Container
from appsentinel.exceptions import ArchiveError
from appsentinel.models.extraction import ArtifactBundle, ExtractionWarning
from appsentinel.models.facts import LayoutDescriptor

logger = logging.getLogger(__name__)

CLEARTEXT_NOTICE = "Cleartext HTTP traffic allowed"

STRING_RESOURCE_RE = re.compile(r"<string[^>]*>([^<]+)</string>")
EDIT_TEXT_RE = re.compile(r"<[\w.]*EditText\b[^>]*>")
INPUT_TYPE_RE = re.compile(r'android:inputType="([^"]+)"')
HINT_RE = re.compile(r'android:hint="([^"]+)"')
CLEARTEXT_PERMITTED_RE = re.compile(r'cleartextTrafficPermitted\s*=\s*"true"')
QUOTED_RE = re.compile(r'"([^"]+)"')

ANDROID_NATIVE_SUFFIXES = (".dex", ".so")
IOS_NATIVE_SUFFIXES = (".dylib",)


def extract_strings_resource(content: str) -> list[str]:
    """Return the inner text of every <string> element in a strings.xml."""
    return STRING_RESOURCE_RE.findall(content)


def extract_layout_info(path: str, content: str) -> LayoutDescriptor:
    """Summarize the input fields declared in a layout file."""
    return LayoutDescriptor(
        path=path,
        edit_texts=len(EDIT_TEXT_RE.findall(content)),
        input_types=tuple(INPUT_TYPE_RE.findall(content)),
        hints=tuple(HINT_RE.findall(content)),
    )


def analyze_network_config(content: str) -> list[str]:
    """Return notices for insecure settings in a network_security_config.xml."""
    notices = []
    if CLEARTEXT_PERMITTED_RE.search(content):
        notices.append(CLEARTEXT_NOTICE)
    return notices


def extract_ios_strings(content: str) -> list[str]:
    """Return every quoted substring of a .strings file, line by line."""
    strings: list[str] = []
    for line in content.splitlines():
        strings.extend(QUOTED_RE.findall(line))
    return strings


class _Collector:
    """Accumulates one bundle while walking the container."""

    def __init__(self, container: Container):
        self.container = container
        self.strings: list[str] = []
        self.layouts: list[LayoutDescriptor] = []
        self.native: list[str] = []
        self.network: list[str] = []
        self.warnings: list[ExtractionWarning] = []

    def visit_text(self, path: str, handler: Callable[[str], None]) -> None:
        """Decode an entry as text and pass it to handler, warning on failure."""
        try:
            content = self.container.read_text(path)
        except UnicodeDecodeError as e:
            self._warn(path, f"not valid UTF-8 text ({e.reason})")
            return
        except ArchiveError as e:
            self._warn(path, str(e))
            return

        handler(content)

    def _warn(self, path: str, reason: str) -> None:
        warning = ExtractionWarning(path=path, reason=reason)
        logger.warning("Skipping %s", warning)
        self.warnings.append(warning)

    def bundle(self) -> ArtifactBundle:
        return ArtifactBundle(
            strings=tuple(self.strings),
            layouts=tuple(self.layouts),
            native_code_entries=tuple(self.native),
            network_findings=tuple(self.network),
            warnings=tuple(self.warnings),
        )


def extract_android_artifacts(container: Container) -> ArtifactBundle:
    """Walk an APK and collect string tables, layouts, native code and network notices."""
    collector = _Collector(container)

    for path in container.list_entries():
        if "res/values/strings.xml" in path:
            collector.visit_text(
                path,
                lambda text: collector.strings.extend(extract_strings_resource(text)),
            )

        if "res/layout/" in path and path.endswith(".xml"):
            collector.visit_text(
                path,
                lambda text, p=path: collector.layouts.append(
                    extract_layout_info(p, text)
                ),
            )

        if "network_security_config.xml" in path:
            collector.visit_text(
                path,
                lambda text: collector.network.extend(analyze_network_config(text)),
            )

        if path.endswith(ANDROID_NATIVE_SUFFIXES):
            collector.native.append(path)

    bundle = collector.bundle()
    logger.debug(
        "Android artifacts: %d strings, %d layouts, %d native entries, %d warnings",
        len(bundle.strings),
        len(bundle.layouts),
        len(bundle.native_code_entries),
        len(bundle.warnings),
    )
    return bundle


def extract_ios_artifacts(container: Container) -> ArtifactBundle:
    """Walk an IPA and collect localized strings and native code entries."""
    collector = _Collector(container)

    for path in container.list_entries():
        if ".lproj/" in path and path.endswith(".strings"):
            collector.visit_text(
                path,
                lambda text: collector.strings.extend(extract_ios_strings(text)),
            )

        if path.endswith(IOS_NATIVE_SUFFIXES) or ".framework/" in path:
            collector.native.append(path)

    bundle = collector.bundle()
    logger.debug(
        "iOS artifacts: %d strings, %d native entries, %d warnings",
        len(bundle.strings),
        len(bundle.native_code_entries),
        len(bundle.warnings),
    )
    return bundle
