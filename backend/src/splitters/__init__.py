from .base import BaseTextSplitter
from .recursive import DEFAULT_SEPARATORS, RecursiveTextSplitter

TextSplitter = RecursiveTextSplitter

__all__ = [
    "BaseTextSplitter",
    "DEFAULT_SEPARATORS",
    "RecursiveTextSplitter",
    "TextSplitter",
]
