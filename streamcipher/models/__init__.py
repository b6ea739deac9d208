from .enums import MediaType, Quality
from .formats import NormalizedFormat, RawFormat
from .request import FormatsRequest, FunctionsRequest
from .response import ErrorResponse, FormatsResponse, FunctionsResponse, SnippetInfo

__all__ = [
    "ErrorResponse",
    "FormatsRequest",
    "FormatsResponse",
    "FunctionsRequest",
    "FunctionsResponse",
    "MediaType",
    "NormalizedFormat",
    "Quality",
    "RawFormat",
    "SnippetInfo",
]
