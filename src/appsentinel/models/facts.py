"""Pydantic models for platform-agnostic package facts."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

UNKNOWN = "Unknown"


class Platform(StrEnum):
    """Mobile platform a package targets."""

    ANDROID = "android"
    IOS = "ios"


class Identifiers(BaseModel):
    """Identity of the analyzed app."""

    model_config = ConfigDict(frozen=True)

    bundle_or_package_id: str = UNKNOWN
    """Android package name or iOS bundle identifier."""

    display_name: str = UNKNOWN
    """Human-readable application name."""

    version: str = UNKNOWN
    """Version string (versionName / CFBundleShortVersionString)."""


class Components(BaseModel):
    """Declared Android components, in manifest document order."""

    model_config = ConfigDict(frozen=True)

    activities: tuple[str, ...] = ()
    services: tuple[str, ...] = ()
    receivers: tuple[str, ...] = ()

    @property
    def total(self) -> int:
        """Number of declared components of all kinds."""
        return len(self.activities) + len(self.services) + len(self.receivers)


class LayoutDescriptor(BaseModel):
    """Input fields found in a single Android layout file."""

    model_config = ConfigDict(frozen=True)

    path: str
    """Archive path of the layout file."""

    edit_texts: int = 0
    """Number of EditText-like elements."""

    input_types: tuple[str, ...] = ()
    """Values of android:inputType attributes."""

    hints: tuple[str, ...] = ()
    """Values of android:hint attributes."""


class PackageFacts(BaseModel):
    """Everything the rule engine knows about a package."""

    model_config = ConfigDict(frozen=True)

    platform: Platform

    identifiers: Identifiers = Identifiers()

    permissions: tuple[str, ...] = ()
    """Requested Android permissions, prefix stripped, de-duplicated."""

    components: Components = Components()

    text_corpus: str = ""
    """Lower-cased concatenation of localized strings and layout hints."""

    native_code_entries: tuple[str, ...] = ()
    """Archive paths of compiled or native code."""

    network_findings: tuple[str, ...] = ()
    """Notices raised while scanning network security declarations."""

    uses_cleartext_traffic: bool = False
    """Whether the Android manifest sets usesCleartextTraffic (reported only)."""

    layouts: tuple[LayoutDescriptor, ...] = ()

    app_folder: str | None = None
    """Name of the .app folder (iOS only)."""

    size_bytes: int = 0
