"""Merge descriptor and artifact output into a single PackageFacts record."""

from appsentinel.models.extraction import ArtifactBundle, ManifestInfo, PlistInfo
from appsentinel.models.facts import Identifiers, PackageFacts, Platform


def build_text_corpus(artifacts: ArtifactBundle) -> str:
    """Join strings and layout hints, in extraction order, lower-cased."""
    hints = [hint for layout in artifacts.layouts for hint in layout.hints]
    return " ".join([*artifacts.strings, *hints]).lower()


def build_android_facts(
    manifest: ManifestInfo, artifacts: ArtifactBundle, size_bytes: int
) -> PackageFacts:
    return PackageFacts(
        platform=Platform.ANDROID,
        identifiers=Identifiers(
            bundle_or_package_id=manifest.package,
            display_name=manifest.label,
            version=manifest.version_name,
        ),
        permissions=tuple(dict.fromkeys(manifest.permissions)),
        components=manifest.components,
        text_corpus=build_text_corpus(artifacts),
        native_code_entries=artifacts.native_code_entries,
        network_findings=artifacts.network_findings,
        uses_cleartext_traffic=manifest.uses_cleartext_traffic,
        layouts=artifacts.layouts,
        size_bytes=size_bytes,
    )


def build_ios_facts(
    plist: PlistInfo, artifacts: ArtifactBundle, size_bytes: int
) -> PackageFacts:
    return PackageFacts(
        platform=Platform.IOS,
        identifiers=Identifiers(
            bundle_or_package_id=plist.bundle_id,
            display_name=plist.display_name,
            version=plist.version,
        ),
        text_corpus=build_text_corpus(artifacts),
        native_code_entries=artifacts.native_code_entries,
        network_findings=artifacts.network_findings,
        app_folder=plist.app_folder,
        size_bytes=size_bytes,
    )
