"""
File source items and routing helpers.

Only distinguishes reference tables from media that needs recognition.
"""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

# Encodings tried in order when decoding uploaded CSV bytes
TEXT_ENCODINGS: Tuple[str, ...] = ('utf-8-sig', 'cp932')

MEDIA_PREFIXES: Tuple[str, ...] = ('image/', 'audio/', 'video/')


@dataclass(frozen=True)
class SourceItem:
    """One uploaded file."""
    filename: str
    mime_type: str
    content: bytes
    
    @classmethod
    def from_path(cls, path: Union[str, Path]) -> 'SourceItem':
        """Read a file from disk, guessing its MIME type from the suffix."""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            mime_type=mime_type or 'application/octet-stream',
            content=path.read_bytes(),
        )


def is_tabular(item: SourceItem) -> bool:
    """True for delimited text (``.csv`` suffix or a csv MIME type)."""
    return item.filename.lower().endswith('.csv') or 'csv' in (item.mime_type or '').lower()


def is_media(item: SourceItem) -> bool:
    """True for images, documents, audio or video that need recognition."""
    mime = (item.mime_type or '').lower()
    return mime.startswith(MEDIA_PREFIXES) or mime == 'application/pdf'


def decode_text(content: bytes) -> str:
    """
    Decode uploaded CSV bytes.
    
    UTF-8 (with or without BOM) first, then Shift-JIS (cp932) as produced
    by Japanese spreadsheet exports.
    
    Raises:
        UnicodeDecodeError: If no supported encoding fits
    """
    last_error = None
    for encoding in TEXT_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError as e:
            last_error = e
    raise last_error
