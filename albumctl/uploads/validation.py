"""Pre-flight file validation.

Runs before any network call. Pure and synchronous: works only on the name,
declared content type and size of a file, never on its content.
"""

from __future__ import annotations

from dataclasses import dataclass

from albumctl.models.media import LocalFile

# =============================================================================
# Allow-lists
# =============================================================================

ALLOWED_IMAGE_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/bmp",
        "image/svg+xml",
    }
)

ALLOWED_VIDEO_TYPES = frozenset(
    {
        "video/mp4",
        "video/mpeg",
        "video/quicktime",
        "video/x-msvideo",
        "video/webm",
        "video/x-ms-wmv",
    }
)

# Ordered for error messages
ALLOWED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".svg")
ALLOWED_VIDEO_EXTENSIONS = (".mp4", ".mpeg", ".mov", ".avi", ".webm", ".wmv")

FORBIDDEN_NAME_SEQUENCES = ("..", "/", "\\")
STRIPPED_CHARACTERS = frozenset('<>:"|?*')
MAX_FILE_NAME_LENGTH = 255

DEFAULT_MAX_SIZE_MB = 100


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class NameValidationResult:
    valid: bool
    error: str | None = None
    sanitized: str | None = None


@dataclass(frozen=True)
class FileValidationResult:
    """Outcome of :func:`validate_file`.

    ``sanitized_name`` is only set when sanitizing changed the name; callers
    should send it downstream instead of the original.
    """

    valid: bool
    is_image: bool = False
    is_video: bool = False
    error: str | None = None
    sanitized_name: str | None = None
    name_error: str | None = None
    size_error: str | None = None


# =============================================================================
# Individual Checks
# =============================================================================


def sanitize_file_name(name: str) -> str:
    """Strip control characters and ``< > : " | ? *`` from a file name."""
    return "".join(ch for ch in name if ord(ch) > 31 and ch not in STRIPPED_CHARACTERS)


def validate_file_name(name: str) -> NameValidationResult:
    """Reject traversal/separator sequences, then sanitize and bound length."""
    if any(seq in name for seq in FORBIDDEN_NAME_SEQUENCES):
        return NameValidationResult(
            valid=False,
            error="Invalid file name. File name cannot contain path separators.",
        )

    sanitized = sanitize_file_name(name)

    if not sanitized:
        return NameValidationResult(valid=False, error="Invalid file name.")

    if len(sanitized) > MAX_FILE_NAME_LENGTH:
        return NameValidationResult(
            valid=False,
            error=f"File name is too long (maximum {MAX_FILE_NAME_LENGTH} characters).",
        )

    return NameValidationResult(
        valid=True,
        sanitized=sanitized if sanitized != name else None,
    )


def file_extension(name: str) -> str:
    """Lower-cased extension including the dot, or "" when there is none."""
    lowered = name.lower()
    dot = lowered.rfind(".")
    return lowered[dot:] if dot != -1 else ""


def classify(content_type: str, name: str) -> tuple[bool, bool]:
    """Return ``(is_image, is_video)`` by MIME type or extension.

    The extension is a fallback because declared MIME types are unreliable
    for some sources.
    """
    mime = (content_type or "").lower()
    ext = file_extension(name)
    is_image = mime in ALLOWED_IMAGE_TYPES or ext in ALLOWED_IMAGE_EXTENSIONS
    is_video = mime in ALLOWED_VIDEO_TYPES or ext in ALLOWED_VIDEO_EXTENSIONS
    return is_image, is_video


def validate_file_type(file: LocalFile) -> FileValidationResult:
    """Check the file against the image and video allow-lists."""
    is_image, is_video = classify(file.content_type, file.name)

    if not is_image and not is_video:
        return FileValidationResult(
            valid=False,
            error=(
                "File type not allowed. Allowed types: "
                f"Images ({', '.join(ALLOWED_IMAGE_EXTENSIONS)}) or "
                f"Videos ({', '.join(ALLOWED_VIDEO_EXTENSIONS)})"
            ),
        )

    return FileValidationResult(valid=True, is_image=is_image, is_video=is_video)


def _format_mb(value: float) -> str:
    return f"{value:g}"


def validate_file_size(file: LocalFile, max_size_mb: float = DEFAULT_MAX_SIZE_MB) -> str | None:
    """Return an error message if the file exceeds ``max_size_mb``."""
    size_mb = file.size / (1024 * 1024)
    if size_mb > max_size_mb:
        return (
            f"File size ({size_mb:.2f}MB) exceeds maximum allowed size "
            f"of {_format_mb(max_size_mb)}MB"
        )
    return None


# =============================================================================
# Full Gate
# =============================================================================


def validate_file(
    file: LocalFile,
    max_size_mb: float = DEFAULT_MAX_SIZE_MB,
    allow_videos: bool = True,
) -> FileValidationResult:
    """Run every pre-flight check; the first failure wins.

    Order: name safety, type classification, video policy, size ceiling.
    """
    name_check = validate_file_name(file.name)
    if not name_check.valid:
        return FileValidationResult(
            valid=False,
            error=name_check.error,
            name_error=name_check.error,
        )

    type_check = validate_file_type(file)
    if not type_check.valid:
        return FileValidationResult(
            valid=False,
            error=type_check.error,
            sanitized_name=name_check.sanitized,
        )

    if type_check.is_video and not allow_videos:
        return FileValidationResult(
            valid=False,
            is_video=True,
            error="Videos are not allowed for this album",
            sanitized_name=name_check.sanitized,
        )

    size_error = validate_file_size(file, max_size_mb)
    if size_error:
        return FileValidationResult(
            valid=False,
            is_image=type_check.is_image,
            is_video=type_check.is_video,
            error=size_error,
            size_error=size_error,
            sanitized_name=name_check.sanitized,
        )

    return FileValidationResult(
        valid=True,
        is_image=type_check.is_image,
        is_video=type_check.is_video,
        sanitized_name=name_check.sanitized,
    )
