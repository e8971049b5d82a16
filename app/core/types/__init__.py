"""核心类型别名集合."""

from .admin import AssociationLink, CandidateItem, DisplayValue, RecordPage, RecordRow
from .structures import (
    ContextDict,
    ContextMapping,
    ContextValue,
    FieldErrorMapping,
    JsonDict,
    JsonValue,
    LoggerExtra,
    MutablePayloadDict,
    PayloadMapping,
    PayloadValue,
    RouteSafetyOptions,
    ScalarValue,
    StructlogEventDict,
)

__all__ = [
    "AssociationLink",
    "CandidateItem",
    "ContextDict",
    "ContextMapping",
    "ContextValue",
    "DisplayValue",
    "FieldErrorMapping",
    "JsonDict",
    "JsonValue",
    "LoggerExtra",
    "MutablePayloadDict",
    "PayloadMapping",
    "PayloadValue",
    "RecordPage",
    "RecordRow",
    "RouteSafetyOptions",
    "ScalarValue",
    "StructlogEventDict",
]
