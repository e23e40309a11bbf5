# homeservice_admin/utils/files.py
from pathlib import PurePath
from typing import Optional
import magic
from ..constants import (
    ICON_MIME_TYPES, MAX_ICON_SIZE, MAX_IMPORT_SIZE,
    SPREADSHEET_EXTENSIONS, SPREADSHEET_MIME_TYPES
)
from ..exceptions import InvalidUploadError
from ..models import FileUpload

SPREADSHEET_CONTENT_TYPES = {
    '.xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    '.xls': 'application/vnd.ms-excel',
    '.csv': 'text/csv',
}

def detect_content_type(content: bytes) -> str:
    """MIME type sniffed from the file content"""
    return magic.from_buffer(content, mime=True)

def inspect_icon(content: bytes, filename: Optional[str] = None) -> FileUpload:
    """Check an uploaded icon and wrap it for a multipart request"""
    content = bytes(content)
    if len(content) > MAX_ICON_SIZE:
        raise InvalidUploadError("Icon is larger than 5MB")

    mime_type = detect_content_type(content)
    if mime_type not in ICON_MIME_TYPES:
        raise InvalidUploadError(f"Icon must be an image, got {mime_type}")

    if not filename:
        filename = f"icon{ICON_MIME_TYPES[mime_type]}"
    return FileUpload(filename=filename, content=content, content_type=mime_type)

def inspect_spreadsheet(content: bytes, filename: str) -> FileUpload:
    """Check a services spreadsheet before the bulk import"""
    content = bytes(content)
    extension = PurePath(filename or "").suffix.lower()
    if extension not in SPREADSHEET_EXTENSIONS:
        raise InvalidUploadError("Please send an .xlsx, .xls or .csv file")
    if not content:
        raise InvalidUploadError("The file is empty")
    if len(content) > MAX_IMPORT_SIZE:
        raise InvalidUploadError("File is larger than 20MB")

    mime_type = detect_content_type(content)
    if mime_type not in SPREADSHEET_MIME_TYPES:
        raise InvalidUploadError(f"File does not look like a spreadsheet ({mime_type})")

    return FileUpload(
        filename=filename,
        content=content,
        content_type=SPREADSHEET_CONTENT_TYPES[extension]
    )
