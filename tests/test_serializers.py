"""Tests for payload serializers."""
import pytest
from datetime import datetime, timezone
from datamodel import BaseModel

from secure_session.exceptions import ConfigurationError, SerializationError
from secure_session.serializers import (
    JSONSerializer,
    PickleSerializer,
    get_serializer,
)


class UserModel(BaseModel):
    """Serializable datamodel for testing."""
    username: str
    email: str
    age: int = 0


@pytest.fixture
def payload():
    return {
        'user': {'id': 42, 'roles': ['admin', 'staff']},
        'flags': {'active': True, 'score': 1.5, 'note': None},
    }


class TestJSONSerializer:
    """Tests for the orjson serializer."""

    def test_roundtrip(self, payload):
        serializer = JSONSerializer()
        assert serializer.loads(serializer.dumps(payload)) == payload

    def test_bytes_values_survive(self):
        """Test nested bytes are wrapped and restored."""
        serializer = JSONSerializer()
        data = {'token': b'\x00\x01raw', 'nested': {'items': [b'abc', 1]}}
        assert serializer.loads(serializer.dumps(data)) == data

    @pytest.mark.parametrize('data', [
        {'k': {'__session_bytes_b64__': 'abc'}},
        {'k': {'__session_bytes_b64__': 'YWJj'}},
        {'__session_bytes_b64__': 'YWJj'},
        {'k': {'__session_escaped__': {'x': 1}}},
        {'k': {'__session_bytes_b64__': b'raw', 'other': 1}},
    ])
    def test_marker_keys_in_user_data(self, data):
        """Test user dicts holding the reserved keys round-trip unchanged."""
        serializer = JSONSerializer()
        assert serializer.loads(serializer.dumps(data)) == data

    def test_invalid_bytes_wrapper(self):
        """Test a malformed bytes wrapper is a SerializationError."""
        with pytest.raises(SerializationError):
            JSONSerializer().loads(b'{"k": {"__session_bytes_b64__": "abc"}}')

    def test_top_level_bytes_wrapper(self):
        """Test a payload decoding to bytes is not a valid payload."""
        with pytest.raises(SerializationError):
            JSONSerializer().loads(b'{"__session_bytes_b64__": "YWJj"}')

    def test_dumps_returns_bytes(self, payload):
        assert isinstance(JSONSerializer().dumps(payload), bytes)

    def test_unserializable_value(self):
        """Test arbitrary objects raise SerializationError."""
        with pytest.raises(SerializationError):
            JSONSerializer().dumps({'obj': object()})

    def test_invalid_bytes(self):
        with pytest.raises(SerializationError):
            JSONSerializer().loads(b'\xff\xfe not json')

    def test_non_mapping_payload(self):
        """Test a JSON list is not a valid payload."""
        with pytest.raises(SerializationError):
            JSONSerializer().loads(b'[1, 2, 3]')


class TestPickleSerializer:
    """Tests for the jsonpickle serializer."""

    def test_roundtrip(self, payload):
        serializer = PickleSerializer()
        assert serializer.loads(serializer.dumps(payload)) == payload

    def test_datetime_survives(self):
        serializer = PickleSerializer()
        now = datetime.now(timezone.utc)
        result = serializer.loads(serializer.dumps({'when': now}))
        assert result['when'] == now

    def test_datamodel_survives(self):
        """Test datamodel instances are restored as models."""
        serializer = PickleSerializer()
        user = UserModel(username='bob', email='bob@example.com', age=25)
        result = serializer.loads(serializer.dumps({'user': user}))
        restored = result['user']
        assert isinstance(restored, UserModel)
        assert restored.username == 'bob'
        assert restored.age == 25

    def test_invalid_bytes(self):
        with pytest.raises(SerializationError):
            PickleSerializer().loads(b'\x00garbage')


class TestGetSerializer:

    def test_known_names(self):
        assert isinstance(get_serializer('json'), JSONSerializer)
        assert isinstance(get_serializer('PICKLE'), PickleSerializer)

    def test_unknown_name(self):
        with pytest.raises(ConfigurationError):
            get_serializer('xml')
