"""appsentinel - offline security triage for Android and iOS app packages."""

__version__ = "0.1.0"
