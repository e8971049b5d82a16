"""关联描述、主键编解码、关联解析与候选项检索."""

from app.admin.associations.descriptor import AssociationDescriptor, Cardinality, describe_association
from app.admin.associations.keys import KEY_DELIMITER, decode_key, encode_key, key_values
from app.admin.associations.resolver import AssociationResolver, LinkageOperation

__all__ = [
    "KEY_DELIMITER",
    "AssociationDescriptor",
    "AssociationResolver",
    "Cardinality",
    "LinkageOperation",
    "decode_key",
    "describe_association",
    "encode_key",
    "key_values",
]
