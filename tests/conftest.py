from __future__ import annotations

import io
import struct
import textwrap
import zipfile
from collections.abc import Callable, Sequence

import pytest

from appsentinel.utils import config


def make_zip(
    entries: dict[str, str | bytes], compression: int = zipfile.ZIP_DEFLATED
) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression) as archive:
        for path, content in entries.items():
            archive.writestr(path, content)
    return buffer.getvalue()


def mark_encrypted(data: bytes, name: str) -> bytes:
    """Set the 'encrypted' flag bit on an entry's local and central headers."""
    buffer = bytearray(data)
    encoded = name.encode()
    # (signature, flag offset, name length offset, name offset)
    headers = ((b"PK\x03\x04", 6, 26, 30), (b"PK\x01\x02", 8, 28, 46))
    for signature, flag_at, name_len_at, name_at in headers:
        pos = buffer.find(signature)
        while pos != -1:
            (name_len,) = struct.unpack_from("<H", buffer, pos + name_len_at)
            if buffer[pos + name_at : pos + name_at + name_len] == encoded:
                (flags,) = struct.unpack_from("<H", buffer, pos + flag_at)
                struct.pack_into("<H", buffer, pos + flag_at, flags | 0x1)
            pos = buffer.find(signature, pos + 4)
    return bytes(buffer)


def manifest_xml(
    permissions: Sequence[str] = (),
    activities: Sequence[str] = (),
    services: Sequence[str] = (),
    receivers: Sequence[str] = (),
    application_attrs: str = 'android:label="Example"',
) -> str:
    perms = "\n".join(f'  <uses-permission android:name="{p}"/>' for p in permissions)
    comps = "\n".join(
        [f'    <activity android:name="{a}"/>' for a in activities]
        + [f'    <service android:name="{s}"/>' for s in services]
        + [f'    <receiver android:name="{r}"/>' for r in receivers]
    )
    return textwrap.dedent(
        """\
        <?xml version="1.0" encoding="utf-8"?>
        <manifest xmlns:android="http://schemas.android.com/apk/res/android"
            package="com.example.app" android:versionName="1.2.3">
        {perms}
          <application {app_attrs}>
        {comps}
          </application>
        </manifest>
        """
    ).format(perms=perms, comps=comps, app_attrs=application_attrs)


def strings_xml(*values: str) -> str:
    body = "\n".join(
        f'  <string name="s{i}">{value}</string>' for i, value in enumerate(values)
    )
    return f"<resources>\n{body}\n</resources>\n"


def info_plist(
    bundle_id: str | None = "com.example.ios",
    display_name: str | None = "Example",
    version: str | None = "2.0",
) -> str:
    pairs = [
        ("CFBundleIdentifier", bundle_id),
        ("CFBundleDisplayName", display_name),
        ("CFBundleShortVersionString", version),
    ]
    body = "\n".join(
        f"  <key>{key}</key>\n  <string>{value}</string>"
        for key, value in pairs
        if value is not None
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<plist version="1.0">\n<dict>\n'
        f"{body}\n"
        "</dict>\n</plist>\n"
    )


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "CONFIG_FILE", tmp_path / "config.json")
    monkeypatch.delenv("APPSENTINEL_RULES", raising=False)
    config.load_config.cache_clear()
    yield tmp_path / "config.json"
    config.load_config.cache_clear()


@pytest.fixture
def build_apk() -> Callable[..., bytes]:
    def _build(
        permissions: Sequence[str] = (),
        strings: Sequence[str] = (),
        extra: dict[str, str | bytes] | None = None,
        manifest: str | bytes | None = None,
    ) -> bytes:
        entries: dict[str, str | bytes] = {
            "AndroidManifest.xml": manifest
            if manifest is not None
            else manifest_xml(permissions=list(permissions)),
        }
        if strings:
            entries["res/values/strings.xml"] = strings_xml(*strings)
        entries["classes.dex"] = b"dex\n035\x00"
        entries.update(extra or {})
        return make_zip(entries)

    return _build


@pytest.fixture
def build_ipa() -> Callable[..., bytes]:
    def _build(
        strings: dict[str, str] | None = None,
        extra: dict[str, str | bytes] | None = None,
        plist: str | None = None,
    ) -> bytes:
        entries: dict[str, str | bytes] = {
            "Payload/Demo.app/Info.plist": plist if plist is not None else info_plist(),
            "Payload/Demo.app/Demo": b"\xcf\xfa\xed\xfe",
        }
        if strings:
            entries["Payload/Demo.app/en.lproj/Localizable.strings"] = "\n".join(
                f'"{key}" = "{value}";' for key, value in strings.items()
            )
        entries.update(extra or {})
        return make_zip(entries)

    return _build
