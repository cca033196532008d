"""Intermediate values handed from the extractors to the normalizer."""

from pydantic import BaseModel, ConfigDict

from appsentinel.models.facts import UNKNOWN, Components, LayoutDescriptor


class ExtractionWarning(BaseModel):
    """A non-fatal failure to read one auxiliary artifact."""

    model_config = ConfigDict(frozen=True)

    path: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


class ManifestInfo(BaseModel):
    """Data decoded from AndroidManifest.xml."""

    model_config = ConfigDict(frozen=True)

    package: str = UNKNOWN
    label: str = UNKNOWN
    version_name: str = UNKNOWN

    permissions: tuple[str, ...] = ()
    """Permission names in document order, duplicates retained."""

    components: Components = Components()

    uses_cleartext_traffic: bool = False
    """Whether <application> sets android:usesCleartextTraffic="true"."""

    is_placeholder: bool = False
    """True when the manifest could not be decoded (e.g. binary XML)."""


class PlistInfo(BaseModel):
    """Data matched out of an iOS Info.plist."""

    model_config = ConfigDict(frozen=True)

    bundle_id: str = UNKNOWN
    display_name: str = UNKNOWN
    version: str = UNKNOWN

    app_folder: str | None = None


class ArtifactBundle(BaseModel):
    """Auxiliary artifacts collected from a single archive pass."""

    model_config = ConfigDict(frozen=True)

    strings: tuple[str, ...] = ()
    layouts: tuple[LayoutDescriptor, ...] = ()
    native_code_entries: tuple[str, ...] = ()
    network_findings: tuple[str, ...] = ()
    warnings: tuple[ExtractionWarning, ...] = ()
