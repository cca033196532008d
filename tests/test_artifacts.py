from __future__ import annotations

import logging
import zipfile

from appsentinel.core.artifacts import (
    CLEARTEXT_NOTICE,
    analyze_network_config,
    extract_android_artifacts,
    extract_ios_artifacts,
    extract_ios_strings,
    extract_layout_info,
    extract_strings_resource,
)
from appsentinel.core.container import open_container
from conftest import make_zip, mark_encrypted, strings_xml

LOGIN_LAYOUT = """\
<LinearLayout xmlns:android="http://schemas.android.com/apk/res/android">
    <EditText
        android:id="@+id/card"
        android:inputType="number"
        android:hint="Card Number" />
    <com.google.android.material.textfield.TextInputEditText
        android:inputType="textPassword"
        android:hint="CVV" />
    <TextView android:text="Pay now" />
</LinearLayout>
"""


def test_extract_strings_resource():
    content = strings_xml("Hello", "Enter your CVV") + '<string name="empty"></string>'
    assert extract_strings_resource(content) == ["Hello", "Enter your CVV"]


def test_extract_layout_info():
    layout = extract_layout_info("res/layout/login.xml", LOGIN_LAYOUT)
    assert layout.path == "res/layout/login.xml"
    assert layout.edit_texts == 2
    assert layout.input_types == ("number", "textPassword")
    assert layout.hints == ("Card Number", "CVV")


def test_analyze_network_config():
    permissive = (
        '<network-security-config><base-config cleartextTrafficPermitted="true"/>'
        "</network-security-config>"
    )
    strict = (
        '<network-security-config><base-config cleartextTrafficPermitted="false"/>'
        "</network-security-config>"
    )
    assert analyze_network_config(permissive) == [CLEARTEXT_NOTICE]
    assert analyze_network_config(strict) == []


def test_extract_ios_strings():
    content = '"greeting" = "Hello";\n/* comment */\n"pay" = "Card Number";\n'
    assert extract_ios_strings(content) == ["greeting", "Hello", "pay", "Card Number"]


def test_android_artifacts_single_pass():
    data = make_zip(
        {
            "AndroidManifest.xml": "<manifest/>",
            "classes.dex": b"dex",
            "res/values/strings.xml": strings_xml("First", "Second"),
            "res/layout/login.xml": LOGIN_LAYOUT,
            "res/layout/raw.txt": "ignored",
            "res/xml/network_security_config.xml": (
                '<base-config cleartextTrafficPermitted="true"/>'
            ),
            "lib/arm64-v8a/libnative.so": b"\x7fELF",
            "classes2.dex": b"dex",
            "res/values-fr/strings.xml": strings_xml("Ignored"),
        }
    )
    with open_container(data) as container:
        bundle = extract_android_artifacts(container)

    assert bundle.strings == ("First", "Second")
    assert [layout.path for layout in bundle.layouts] == ["res/layout/login.xml"]
    assert bundle.native_code_entries == (
        "classes.dex",
        "lib/arm64-v8a/libnative.so",
        "classes2.dex",
    )
    assert bundle.network_findings == (CLEARTEXT_NOTICE,)
    assert bundle.warnings == ()


def test_android_artifacts_skip_undecodable_entry(caplog):
    data = make_zip(
        {
            "res/values/strings.xml": b"\xfa\xfb<string>broken</string>",
            "res/layout/main.xml": '<EditText android:hint="Passport" />',
            "app/src/res/values/strings.xml": strings_xml("Still read"),
        }
    )
    with caplog.at_level(logging.WARNING, logger="appsentinel.core.artifacts"):
        with open_container(data) as container:
            bundle = extract_android_artifacts(container)

    assert bundle.strings == ("Still read",)
    assert bundle.layouts[0].hints == ("Passport",)
    assert [w.path for w in bundle.warnings] == ["res/values/strings.xml"]
    assert "res/values/strings.xml" in caplog.text


def test_ios_artifacts():
    data = make_zip(
        {
            "Payload/Demo.app/Info.plist": "<plist/>",
            "Payload/Demo.app/en.lproj/Localizable.strings": '"title" = "Bank Account";',
            "Payload/Demo.app/Base.lproj/Main.storyboardc/Info.plist": "<plist/>",
            "Payload/Demo.app/Frameworks/Kit.framework/Kit": b"\xcf\xfa",
            "Payload/Demo.app/Frameworks/libswiftCore.dylib": b"\xcf\xfa",
            "Payload/Demo.app/fr.lproj/Localizable.strings": b"\xfa\xfb\xfc",
        }
    )
    with open_container(data) as container:
        bundle = extract_ios_artifacts(container)

    assert bundle.strings == ("title", "Bank Account")
    assert bundle.native_code_entries == (
        "Payload/Demo.app/Frameworks/Kit.framework/Kit",
        "Payload/Demo.app/Frameworks/libswiftCore.dylib",
    )
    assert bundle.network_findings == ()
    assert len(bundle.warnings) == 1


def test_android_artifacts_skip_encrypted_entry():
    data = make_zip(
        {
            "res/values/strings.xml": strings_xml("Locked"),
            "res/layout/main.xml": '<EditText android:hint="CVV" />',
            "classes.dex": b"dex",
        }
    )
    data = mark_encrypted(data, "res/values/strings.xml")

    with open_container(data) as container:
        bundle = extract_android_artifacts(container)

    assert bundle.strings == ()
    assert bundle.layouts[0].hints == ("CVV",)
    assert bundle.native_code_entries == ("classes.dex",)
    [warning] = bundle.warnings
    assert warning.path == "res/values/strings.xml"
    assert "encrypted" in warning.reason


def test_android_artifacts_skip_corrupt_entry():
    data = make_zip(
        {
            "res/values/strings.xml": strings_xml("Original text"),
            "res/xml/network_security_config.xml": (
                '<base-config cleartextTrafficPermitted="true"/>'
            ),
        },
        compression=zipfile.ZIP_STORED,
    )
    data = data.replace(b"Original text", b"Tampered text")

    with open_container(data) as container:
        bundle = extract_android_artifacts(container)

    assert bundle.strings == ()
    assert bundle.network_findings == (CLEARTEXT_NOTICE,)
    assert [w.path for w in bundle.warnings] == ["res/values/strings.xml"]
