# sfm/errors.py


class SfmError(Exception):
    """Base class for every error SFM raises on purpose."""


class TemplateMissingError(SfmError, LookupError):
    """A feature was offered without a template for the active shell family."""

    def __init__(self, key: str, family):
        self.key = key
        self.family = family
        super().__init__(f"No template registered for '{key}' ({family.value})")


class ConfigBlockError(SfmError):
    """The managed block in a startup file is malformed."""


class UserCancelled(SfmError):
    """The user backed out of a prompt or menu."""
