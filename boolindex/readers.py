"""
Document readers: turn a binary file stream into a lazy sequence of raw words.

Each reader declares which file names it handles (can_read) and yields words
in document order without normalizing them. A stream can be read once; to
read it again, reopen the file.
"""

import csv
import io
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Iterator

from bs4 import BeautifulSoup

from .text_processing import extract_text_from_html, tokenize_words

DEFAULT_ENCODING = "utf-8-sig"
# Tried in order when the preferred encoding fails; cp1251 covers legacy
# Cyrillic text.
FALLBACK_ENCODINGS = ("cp1251",)


def decode_text(data: bytes, encoding: str = DEFAULT_ENCODING) -> str:
    """
    Decode bytes with the preferred encoding, then the fallbacks. If none of
    them fits, undecodable bytes are replaced so the rest of the text survives.
    """
    for candidate in (encoding, *FALLBACK_ENCODINGS):
        try:
            return data.decode(candidate)
        except UnicodeDecodeError:
            continue
    return data.decode(encoding, errors="replace")


class TextReader(ABC):
    """Base class for format-specific readers."""

    extensions: tuple[str, ...] = ()

    def can_read(self, file_path: str | Path) -> bool:
        return str(file_path).lower().endswith(self.extensions)

    @abstractmethod
    def read_words(self, stream: BinaryIO) -> Iterator[str]:
        """Yield raw words from the stream."""


class TxtTextReader(TextReader):
    extensions = (".txt",)

    def __init__(self, encoding: str = DEFAULT_ENCODING) -> None:
        self.encoding = encoding

    def read_words(self, stream: BinaryIO) -> Iterator[str]:
        text = decode_text(stream.read(), self.encoding)
        for line in text.splitlines():
            yield from tokenize_words(line)


class CsvTextReader(TextReader):
    """Reads words from one column of a CSV file (0-based index)."""

    extensions = (".csv",)

    def __init__(self, text_column: int = 0, encoding: str = DEFAULT_ENCODING) -> None:
        if text_column < 0:
            raise ValueError("Column index cannot be negative.")
        self.text_column = text_column
        self.encoding = encoding

    def read_words(self, stream: BinaryIO) -> Iterator[str]:
        text = io.StringIO(decode_text(stream.read(), self.encoding), newline="")
        for row in csv.reader(text):
            if len(row) > self.text_column:
                yield from tokenize_words(row[self.text_column])


class Fb2TextReader(TextReader):
    """
    FictionBook 2 e-books, plain (.fb2) or zipped (.fb2.zip).
    Embedded <binary> payloads (base64 images) are not text and are dropped.
    """

    extensions = (".fb2", ".fb2.zip")

    def read_words(self, stream: BinaryIO) -> Iterator[str]:
        soup = BeautifulSoup(self._read_markup(stream), "xml")
        for element in soup.find_all("binary"):
            element.decompose()
        for text in soup.stripped_strings:
            yield from tokenize_words(text)

    @staticmethod
    def _read_markup(stream: BinaryIO) -> bytes:
        data = stream.read()
        if not zipfile.is_zipfile(io.BytesIO(data)):
            return data
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            members = [n for n in archive.namelist() if n.lower().endswith(".fb2")]
            if not members:
                raise ValueError("Archive contains no .fb2 document")
            return archive.read(members[0])


class HtmlTextReader(TextReader):
    extensions = (".html", ".htm")

    def read_words(self, stream: BinaryIO) -> Iterator[str]:
        yield from tokenize_words(extract_text_from_html(stream.read()))


class ReaderFactory:
    """Resolves the first reader that can handle a file, or None."""

    def __init__(self, readers: list[TextReader] | None = None) -> None:
        if readers is None:
            readers = [
                TxtTextReader(),
                CsvTextReader(text_column=1),
                Fb2TextReader(),
                HtmlTextReader(),
            ]
        self.readers = readers

    def get_reader(self, file_path: str | Path) -> TextReader | None:
        for reader in self.readers:
            if reader.can_read(file_path):
                return reader
        return None
