"""Error taxonomy for the template-fill pipeline."""


class FillerError(Exception):
    """Base class for all pipeline errors surfaced to the user."""


class TemplateNotFoundError(FillerError):
    """The requested template is not in the template cache."""

    def __init__(self, path: str):
        super().__init__(f"Template not found: {path}")
        self.path = path


class InvalidTemplateContentError(FillerError):
    """The template exists but its content is empty or unreadable."""

    def __init__(self, path: str, reason: str = "template is empty"):
        super().__init__(f"Invalid template content in {path}: {reason}")
        self.path = path


class ProviderNotConfiguredError(FillerError):
    """No LLM adapter is available for the configured provider."""

    def __init__(self, message: str = "LLM adapter is not initialized."):
        super().__init__(message)


class GenerationError(FillerError):
    """The remote generation call failed or returned nothing usable."""


class FileSystemError(FillerError):
    """A storage operation (scan, read, create, write) failed."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class AlreadyExistsError(FileSystemError):
    """The computed output path is already taken."""

    def __init__(self, path: str):
        super().__init__(f"File already exists: {path}", path=path)
