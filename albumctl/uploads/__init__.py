"""Media upload: pre-flight validation, transfer adapters and the session state machine."""

from albumctl.uploads.adapters import (
    AdapterRegistry,
    DirectPutAdapter,
    LocalMultipartAdapter,
    SignedMultipartAdapter,
    TransferAdapter,
    TransferReceipt,
    default_registry,
)
from albumctl.uploads.preview import PreviewHandle, PreviewStore
from albumctl.uploads.session import (
    AlbumDestination,
    PublicAlbumDestination,
    UploadCoordinator,
    UploadDestination,
    UploadPhase,
    UploadResult,
    UploadSession,
)
from albumctl.uploads.validation import (
    FileValidationResult,
    sanitize_file_name,
    validate_file,
    validate_file_name,
    validate_file_size,
    validate_file_type,
)

__all__ = [
    "AdapterRegistry",
    "TransferAdapter",
    "TransferReceipt",
    "DirectPutAdapter",
    "SignedMultipartAdapter",
    "LocalMultipartAdapter",
    "default_registry",
    "PreviewHandle",
    "PreviewStore",
    "UploadCoordinator",
    "UploadSession",
    "UploadPhase",
    "UploadResult",
    "UploadDestination",
    "AlbumDestination",
    "PublicAlbumDestination",
    "FileValidationResult",
    "validate_file",
    "validate_file_name",
    "validate_file_size",
    "validate_file_type",
    "sanitize_file_name",
]
