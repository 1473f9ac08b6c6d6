class ManifestError(Exception):
    """Base class for every fatal error raised by the pipeline."""


class ConfigurationError(ManifestError):
    """Settings are missing or invalid. Raised before the browser starts."""


class CookieFileError(ManifestError):
    """The persisted cookie file could not be read or parsed."""


class ExtractionError(ManifestError):
    """An element the course page must contain was not found."""


class DownloadLinkNotFound(ExtractionError):
    """A chapter's download link could not be resolved (strict mode only)."""
