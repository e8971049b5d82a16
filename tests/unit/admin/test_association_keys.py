import pytest

from app.admin.associations import decode_key, encode_key
from app.core.exceptions import MalformedKeyError, NotFoundError
from tests.fixtures.models import Fanship, ManagingUser, Player

FANSHIP_KEY = tuple(Fanship.__table__.primary_key.columns)


@pytest.mark.unit
def test_composite_key_is_comma_joined_in_primary_key_order() -> None:
    assert encode_key((3, 7)) == "3,7"
    assert decode_key("3,7", FANSHIP_KEY) == (3, 7)
    assert decode_key(" 3 , 7 ", FANSHIP_KEY) == (3, 7)


@pytest.mark.unit
def test_single_column_key_is_coerced_to_column_type() -> None:
    assert decode_key("12", (Player.__table__.c.id,)) == (12,)
    assert decode_key("a@b.com", (ManagingUser.__table__.c.email,)) == ("a@b.com",)


@pytest.mark.unit
def test_string_key_may_contain_delimiter_when_single_column() -> None:
    assert decode_key("x,y", (ManagingUser.__table__.c.email,)) == ("x,y",)


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["3", "3,7,9", "3,", ",7", "a,7", ""])
def test_malformed_composite_key_is_rejected(raw: str) -> None:
    with pytest.raises(MalformedKeyError) as exc_info:
        decode_key(raw, FANSHIP_KEY)

    assert exc_info.value.expected_parts == 2
    assert isinstance(exc_info.value, NotFoundError)


@pytest.mark.unit
def test_non_numeric_integer_key_is_rejected() -> None:
    with pytest.raises(MalformedKeyError):
        decode_key("abc", (Player.__table__.c.id,))
