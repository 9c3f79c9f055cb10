from django.core.validators import ProhibitNullCharactersValidator
from rest_framework import serializers


def _text(data: bytes) -> str:
    return bytes(data).decode("utf-8", errors="replace")


class OpaqueCharField(serializers.CharField):
    """CharField that accepts any text, NUL characters included."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.validators = [
            validator
            for validator in self.validators
            if not isinstance(validator, ProhibitNullCharactersValidator)
        ]


class SetRequestSerializer(serializers.Serializer):
    """Body of ``POST /set`` and ``PUT /set/``."""

    key = OpaqueCharField(
        trim_whitespace=False,
        help_text="The key to create or overwrite. Must not be empty.",
    )
    value = OpaqueCharField(
        trim_whitespace=False,
        help_text="The value to store for the key. Must not be empty.",
    )


class EntrySerializer(serializers.Serializer):
    """Renders a key/value pair of byte strings as UTF-8 text."""

    key = serializers.SerializerMethodField()
    value = serializers.SerializerMethodField()

    def get_key(self, obj) -> str:
        return _text(obj.key)

    def get_value(self, obj) -> str:
        return _text(obj.value)


class PageResultSerializer(serializers.Serializer):
    """Serializer for paginated list and search responses."""

    items = EntrySerializer(many=True, help_text="Entries in this page, in key order")
    page = serializers.IntegerField(help_text="Page number that was served")
    page_size = serializers.IntegerField(help_text="Page size that was applied")
    total = serializers.IntegerField(
        help_text="Number of matching entries across all pages"
    )
