import logging

from django.utils import timezone
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse
from rest_framework import status
from rest_framework.exceptions import ParseError, UnsupportedMediaType
from rest_framework.response import Response
from rest_framework.views import APIView

from texts.exceptions import QueryError
from texts.serializers import (
    ErrorSerializer,
    HealthSerializer,
    TextLookupSerializer,
    TextRecordSerializer,
    TextSaveResponseSerializer,
    TextWriteSerializer,
)

logger = logging.getLogger(__name__)

GET_FAILED = "Failed to get text"
SAVE_FAILED = "Failed to save text"

KEY_PARAMETER = OpenApiParameter(
    name="key",
    type=str,
    location=OpenApiParameter.PATH,
    description="The key (number) identifying the text",
)


def error_response(message: str) -> Response:
    return Response({"error": message}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class TextRecordView(APIView):
    """Read or overwrite the text stored under a key."""

    # Injected through as_view(store=...) when the URLconf is built
    store = None

    @extend_schema(
        operation_id="read_text",
        summary="Read the text stored under a key",
        description="Returns the stored text and whether a record exists. A key that was never written returns an empty text with exists=false.",
        parameters=[KEY_PARAMETER],
        responses={
            200: OpenApiResponse(response=TextLookupSerializer, description="Lookup result"),
            500: OpenApiResponse(response=ErrorSerializer, description="The store could not be queried"),
        },
        tags=["Texts"],
    )
    def get(self, request, key: str):
        try:
            lookup = self.store.get(key)
        except QueryError:
            return error_response(GET_FAILED)
        return Response(TextLookupSerializer(lookup).data)

    @extend_schema(
        operation_id="save_text",
        summary="Create or replace the text stored under a key",
        description="Creates the record on the first write to a key, otherwise replaces its text and refreshes updatedAt.",
        parameters=[KEY_PARAMETER],
        request=TextWriteSerializer,
        responses={
            200: OpenApiResponse(response=TextSaveResponseSerializer, description="The stored record"),
            500: OpenApiResponse(response=ErrorSerializer, description="The text could not be saved"),
        },
        tags=["Texts"],
    )
    def post(self, request, key: str):
        try:
            data = request.data
        except (ParseError, UnsupportedMediaType) as e:
            logger.error(f"Error saving text {key!r}: unreadable body: {e}")
            return error_response(SAVE_FAILED)

        serializer = TextWriteSerializer(data=data)
        if not serializer.is_valid():
            logger.error(f"Error saving text {key!r}: invalid payload {serializer.errors}")
            return error_response(SAVE_FAILED)

        try:
            record = self.store.upsert(key, serializer.validated_data["text"])
        except QueryError:
            return error_response(SAVE_FAILED)

        return Response({"success": True, "text": TextRecordSerializer(record).data})


class HealthCheckView(APIView):
    """Liveness endpoint; does not touch the database."""

    @extend_schema(
        operation_id="health_check",
        summary="Health check",
        responses={200: OpenApiResponse(response=HealthSerializer, description="The process is up")},
        tags=["Health & Monitoring"],
    )
    def get(self, request):
        return Response({"status": "ok", "timestamp": timezone.now()}, status=status.HTTP_200_OK)
