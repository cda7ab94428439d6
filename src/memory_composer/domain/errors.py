"""Error taxonomy for composition actions."""

from memory_composer.domain.photos import PhotoRole


class CompositionError(Exception):
    """Recoverable failure of a single user action."""

    code = "UNKNOWN_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PreconditionFailedError(CompositionError):
    """A required photo role is missing."""

    code = "PRECONDITION_FAILED"

    def __init__(self, missing_role: PhotoRole) -> None:
        super().__init__(f"At least one {missing_role.value} photo is required")
        self.missing_role = missing_role


class InvalidImageDataError(CompositionError):
    """The base image for an edit carries no usable payload."""

    code = "INVALID_IMAGE_DATA"


class CorruptedImageDataError(CompositionError):
    """The base image payload is not valid base64."""

    code = "CORRUPTED_IMAGE_DATA"


class NoContentInResponseError(CompositionError):
    """The service replied with neither an image nor text."""

    code = "NO_CONTENT_IN_RESPONSE"


class EnhancementFailedError(CompositionError):
    """The service did not return an enhanced image."""

    code = "ENHANCEMENT_FAILED"


class ServiceCallError(CompositionError):
    """The call to the external service failed."""

    code = "UNKNOWN_ERROR"


class UnsupportedImageError(CompositionError):
    """An uploaded file could not be decoded as an image."""

    code = "UNSUPPORTED_IMAGE"


class PhotoNotFoundError(CompositionError):
    """No photo with the given id exists in the session."""

    code = "PHOTO_NOT_FOUND"


class ImageNotFoundError(CompositionError):
    """No generated image with the given id exists in the session."""

    code = "IMAGE_NOT_FOUND"


class UnknownScenarioError(CompositionError):
    """The scenario id is not in the catalog."""

    code = "UNKNOWN_SCENARIO"
