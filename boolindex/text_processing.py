"""
Text processing shared by the readers, the index builder and the query parser.

- Word extraction: runs of letters (Unicode aware), via nltk's RegexpTokenizer.
  Text is composed to NFC first so a letter plus combining mark stays one
  character.
- Normalization: letters only, lower-cased. May return "" to mean "discard".
- HTML text extraction with BeautifulSoup + lxml.
"""

import unicodedata
import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning, XMLParsedAsHTMLWarning
from nltk.tokenize import RegexpTokenizer

warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)
warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)

# Letters only: \w minus digits and underscore.
_WORD_TOKENIZER = RegexpTokenizer(r"[^\W\d_]+")


def tokenize_words(text: str) -> list[str]:
    """Split text into raw (un-normalized) words."""
    if not text:
        return []
    return _WORD_TOKENIZER.tokenize(unicodedata.normalize("NFC", text))


def normalize(token: str) -> str:
    """
    Keep only the letters of a token and lower-case them.
    Returns "" for tokens with no letters (punctuation, numbers, whitespace).
    """
    if not token or token.isspace():
        return ""
    token = unicodedata.normalize("NFC", token)
    return "".join(ch for ch in token if ch.isalpha()).lower()


def extract_text_from_html(html_content: str | bytes) -> str:
    """
    Extract visible text from HTML content, stripping tags and scripts.
    """
    soup = BeautifulSoup(html_content, "lxml")
    for element in soup(["script", "style"]):
        element.decompose()
    return soup.get_text(separator=" ", strip=True)
