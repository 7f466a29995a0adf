from rest_framework import serializers

from texts.models import TextRecord


class TextRecordSerializer(serializers.ModelSerializer):
    """Serializer for a stored text record."""

    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = TextRecord
        fields = [
            "key",
            "text",
            "updatedAt",
        ]
        read_only_fields = ["key", "text"]


class TextWriteSerializer(serializers.Serializer):
    """Serializer for the body of a text write."""

    text = serializers.CharField(
        required=False,
        default="",
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False,
        help_text="The text to store for the key. Missing or null stores an empty string.",
    )

    def validate_text(self, value):
        return "" if value is None else value


class TextLookupSerializer(serializers.Serializer):
    """Serializer for read responses."""

    text = serializers.CharField(
        trim_whitespace=False,
        help_text="The stored text, or an empty string if the key has never been written",
    )
    exists = serializers.BooleanField(help_text="Whether a record exists for the key")


class TextSaveResponseSerializer(serializers.Serializer):
    """Serializer for successful write responses."""

    success = serializers.BooleanField()
    text = TextRecordSerializer(help_text="The record as stored after the write")


class ErrorSerializer(serializers.Serializer):
    """Uniform error envelope."""

    error = serializers.CharField()


class HealthSerializer(serializers.Serializer):
    status = serializers.CharField()
    timestamp = serializers.DateTimeField()
