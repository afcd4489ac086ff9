"""Error types raised by the orgpick engine."""


class OrgPickError(Exception):
    """Base error for orgpick."""


class NoRootError(OrgPickError):
    """Raised when a scoped session's anchor lies under no project root."""

    def __init__(self, anchor=None):
        self.anchor = tuple(anchor) if anchor is not None else None
        if self.anchor:
            message = f"cannot find a root for {'/'.join(self.anchor)}"
        else:
            message = "cannot find a root"
        super().__init__(message)


class ConfigError(OrgPickError):
    """Raised when configuration validation or loading fails."""


class UnknownComparatorError(ConfigError):
    """Raised when a comparator name is not registered."""

    def __init__(self, name: str, known):
        self.name = name
        super().__init__(
            f"Unknown comparator '{name}'. Known: {', '.join(sorted(known))}"
        )
