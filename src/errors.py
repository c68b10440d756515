"""Exceptions raised while building or running npm commands."""


class NpmctlError(Exception):
    """Base class for npmctl failures."""


class NpmNotFoundError(NpmctlError):
    """The npm executable could not be located."""

    def __init__(self, searched):
        self.searched = list(searched)
        super().__init__(
            "Cannot find npm. Searched: " + (", ".join(self.searched) or "<nothing>")
        )


class InvalidVersionRangeError(NpmctlError, ValueError):
    """A version range npm would not accept."""

    def __init__(self, package_name: str, version_range: str):
        self.package_name = package_name
        self.version_range = version_range
        super().__init__(f"Invalid version range '{version_range}' for package '{package_name}'")


class CommandTimeoutError(NpmctlError):
    """The npm process ran longer than its timeout and was killed."""

    def __init__(self, arguments, timeout: float):
        self.arguments = list(arguments)
        self.timeout = timeout
        super().__init__(f"npm {' '.join(self.arguments)} timed out after {timeout}s")
