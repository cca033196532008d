"""Typed exception hierarchy for appsentinel."""


class SentinelError(Exception):
    """Base exception for all appsentinel errors."""

    pass


class AnalysisError(SentinelError):
    """Raised when a package analysis cannot produce a result."""

    pass


class ArchiveError(AnalysisError):
    """Raised when the package is not a well-formed compressed container."""

    pass


class EntryNotFoundError(AnalysisError):
    """Raised when a requested archive entry does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Archive entry not found: {path}")


class DescriptorMissingError(AnalysisError):
    """Raised when the platform descriptor (manifest or plist) is absent."""

    def __init__(self, artifact: str):
        self.artifact = artifact
        super().__init__(f"{artifact} not found in package")


class UnsupportedPackageError(AnalysisError):
    """Raised when the package type cannot be determined from its name."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(
            f"Unsupported package (expected .apk or .ipa extension): {filename}"
        )


class RuleConfigError(SentinelError):
    """Raised when a rule table file cannot be loaded or is invalid."""

    pass
