"""Locate and decode platform descriptors: AndroidManifest.xml and Info.plist."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from xml.parsers.expat import errors as expat_errors
from xml.sax.saxutils import unescape

from appsentinel.core.container import Container
from appsentinel.exceptions import DescriptorMissingError
from appsentinel.models.extraction import ManifestInfo, PlistInfo
from appsentinel.models.facts import UNKNOWN, Components

logger = logging.getLogger(__name__)

ANDROID_MANIFEST = "AndroidManifest.xml"
INFO_PLIST = "Info.plist"

ANDROID_NS = "http://schemas.android.com/apk/res/android"
PERMISSION_PREFIX = "android.permission."

# Substituted when the manifest is not plain-text XML (usually binary AXML)
PLACEHOLDER_MANIFEST = (
    "<manifest><!-- Binary XML - requires specialized parser --></manifest>"
)

MANIFEST_OPEN_RE = re.compile(r"<manifest\b")
UNBOUND_PREFIX = expat_errors.codes[expat_errors.XML_ERROR_UNBOUND_PREFIX]

PLIST_PATH_RE = re.compile(r"(?:^|/)([^/]+\.app)/Info\.plist$")

PLIST_KEYS: dict[str, str] = {
    "bundle_id": "CFBundleIdentifier",
    "display_name": "CFBundleDisplayName",
    "version": "CFBundleShortVersionString",
}


# Android


def locate_manifest(container: Container) -> bytes:
    """Return the raw AndroidManifest.xml bytes.

    Raises:
        DescriptorMissingError: If the archive has no manifest at its root.
    """
    if ANDROID_MANIFEST not in container:
        raise DescriptorMissingError(ANDROID_MANIFEST)
    return container.read_entry(ANDROID_MANIFEST)


def _parse_xml(text: str) -> ET.Element:
    """Parse manifest text, declaring the android prefix if the document omits it."""
    try:
        return ET.fromstring(text)
    except ET.ParseError as e:
        if e.code != UNBOUND_PREFIX or "xmlns:android" in text:
            raise
    logger.debug("Manifest lacks xmlns:android, retrying with it declared")
    patched = MANIFEST_OPEN_RE.sub(
        rf'\g<0> xmlns:android="{ANDROID_NS}"', text, count=1
    )
    return ET.fromstring(patched)


def decode_manifest(raw: bytes) -> tuple[ET.Element, bool]:
    """Decode manifest bytes into an XML tree.

    Falls back to :data:`PLACEHOLDER_MANIFEST` when the bytes are not
    UTF-8 text or not well-formed XML.

    Returns:
        The document root and whether the placeholder was used.
    """
    try:
        return _parse_xml(raw.decode("utf-8-sig")), False
    except UnicodeDecodeError:
        logger.info("Manifest is not UTF-8 text (binary XML?), using placeholder")
    except ET.ParseError as e:
        logger.info("Manifest is not well-formed XML (%s), using placeholder", e)

    return ET.fromstring(PLACEHOLDER_MANIFEST), True


def _android_attr(element: ET.Element, name: str) -> str | None:
    """Get an android:-namespaced attribute, tolerating a missing namespace."""
    value = element.get(f"{{{ANDROID_NS}}}{name}")
    if value is None:
        value = element.get(name)
    return value


def _component_names(root: ET.Element, tag: str) -> tuple[str, ...]:
    names = (_android_attr(node, "name") for node in root.iter(tag))
    return tuple(name for name in names if name)


def parse_manifest(raw: bytes) -> ManifestInfo:
    """Extract permissions, components and identity from manifest bytes."""
    root, is_placeholder = decode_manifest(raw)

    permissions: list[str] = []
    for node in root.iter("uses-permission"):
        name = _android_attr(node, "name")
        if name:
            permissions.append(name.removeprefix(PERMISSION_PREFIX))

    application = root.find("application")
    label = None
    cleartext = False
    if application is not None:
        label = _android_attr(application, "label")
        cleartext = _android_attr(application, "usesCleartextTraffic") == "true"

    return ManifestInfo(
        package=root.get("package") or UNKNOWN,
        label=label or UNKNOWN,
        version_name=_android_attr(root, "versionName") or UNKNOWN,
        permissions=tuple(permissions),
        components=Components(
            activities=_component_names(root, "activity"),
            services=_component_names(root, "service"),
            receivers=_component_names(root, "receiver"),
        ),
        uses_cleartext_traffic=cleartext,
        is_placeholder=is_placeholder,
    )


def extract_manifest(container: Container) -> ManifestInfo:
    """Locate and parse the Android manifest of an opened package."""
    return parse_manifest(locate_manifest(container))


# iOS


def locate_plist(container: Container) -> tuple[bytes, str]:
    """Return the raw bytes of the first ``*.app/Info.plist`` and its .app folder.

    Raises:
        DescriptorMissingError: If no app bundle Info.plist exists.
    """
    for path in container.list_entries():
        match = PLIST_PATH_RE.search(path)
        if match:
            logger.debug("Using %s (app folder %s)", path, match.group(1))
            return container.read_entry(path), match.group(1)

    raise DescriptorMissingError(INFO_PLIST)


def _plist_string(text: str, key: str) -> str | None:
    pattern = rf"<key>{re.escape(key)}</key>\s*<string>([^<]+)</string>"
    match = re.search(pattern, text)
    if match is None:
        return None
    return unescape(match.group(1))


def parse_plist(text: str, app_folder: str | None = None) -> PlistInfo:
    """Match the identity keys out of an XML property list.

    Keys that are absent (or a binary plist) yield "Unknown".
    """
    values = {
        field: _plist_string(text, key) or UNKNOWN
        for field, key in PLIST_KEYS.items()
    }
    return PlistInfo(app_folder=app_folder, **values)


def extract_plist(container: Container) -> PlistInfo:
    """Locate and parse the Info.plist of an opened IPA."""
    raw, app_folder = locate_plist(container)
    return parse_plist(raw.decode("utf-8", errors="replace"), app_folder)
