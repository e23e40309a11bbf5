# homeservice_admin/api/multipart.py
from typing import Any, List, Optional, Tuple
import aiohttp

class MultipartForm:
    """Ordered multipart fields plus attached files, sent as multipart/form-data"""

    def __init__(self):
        self.fields: List[Tuple[str, str]] = []
        self.files: List[Tuple[str, Any]] = []

    def add(self, name: str, value: Any):
        """Append a text field; empty values are left out"""
        if value is None or value == "":
            return
        if isinstance(value, bool):
            value = "true" if value else "false"
        self.fields.append((name, str(value)))

    def set(self, name: str, value: Any):
        """Replace every value of a field"""
        self.fields = [(key, val) for key, val in self.fields if key != name]
        self.add(name, value)

    def add_file(self, name: str, upload):
        self.files.append((name, upload))

    def get(self, name: str) -> Optional[str]:
        for key, value in self.fields:
            if key == name:
                return value
        return None

    def as_dict(self) -> dict:
        return dict(self.fields)

    def copy(self) -> 'MultipartForm':
        clone = MultipartForm()
        clone.fields = list(self.fields)
        clone.files = list(self.files)
        return clone

    def to_writer(self) -> aiohttp.MultipartWriter:
        """multipart/form-data body, even when no file is attached"""
        writer = aiohttp.MultipartWriter("form-data")
        for name, value in self.fields:
            part = writer.append(value)
            part.set_content_disposition("form-data", name=name)
        for name, upload in self.files:
            part = writer.append(upload.content, {"Content-Type": upload.content_type})
            part.set_content_disposition("form-data", name=name, filename=upload.filename)
        return writer

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __repr__(self):
        files = [f"{name}={upload.filename}" for name, upload in self.files]
        return f"MultipartForm(fields={self.fields!r}, files={files!r})"
