from django.http import HttpResponse
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework.response import Response
from rest_framework.views import APIView

from storage.pagination import PageRequest, Paginator
from storage.serializers import PageResultSerializer, SetRequestSerializer
from storage.services import delete_value, get_value, list_entries, search_entries, set_value
from storage.store import Store

PAGINATION_PARAMETERS = [
    OpenApiParameter(
        name="page",
        type=int,
        location=OpenApiParameter.QUERY,
        description="Page number, starting at 1. Invalid values fall back to 1.",
        required=False,
    ),
    OpenApiParameter(
        name="page_size",
        type=int,
        location=OpenApiParameter.QUERY,
        description="Entries per page. Invalid values fall back to 10.",
        required=False,
    ),
]

KEY_PARAMETER = OpenApiParameter(
    name="key",
    type=str,
    location=OpenApiParameter.PATH,
    description="The key, taken verbatim from the rest of the path",
)


def text_response(message: str) -> HttpResponse:
    return HttpResponse(message, content_type="text/plain; charset=utf-8")


class StoreView(APIView):
    """Base view holding the injected store handle and paginator."""

    store: Store = None
    paginator: Paginator = None

    def page_request(self, request) -> PageRequest:
        return PageRequest.from_params(
            page=request.query_params.get("page"),
            page_size=request.query_params.get("page_size"),
        )


class SetView(StoreView):
    """Create or overwrite a key/value pair."""

    @extend_schema(
        operation_id="set_key",
        summary="Create or overwrite a key/value pair",
        description="Write the value under the key in a single write transaction.",
        request=SetRequestSerializer,
        responses={
            200: OpenApiResponse(description="Plain text confirmation"),
            400: OpenApiResponse(description="Missing or empty key or value"),
            500: OpenApiResponse(description="Store failure"),
        },
        tags=["Key-Value Operations"],
    )
    def post(self, request):
        serializer = SetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        key = serializer.validated_data["key"]
        set_value(self.store, key, serializer.validated_data["value"])
        return text_response(f"Key '{key}' set successfully")


class SetPutView(SetView):
    """PUT flavour of ``/set``. Any key in the path is ignored; the body wins."""

    http_method_names = ["put", "options"]

    @extend_schema(
        operation_id="update_key",
        summary="Create or overwrite a key/value pair",
        description="Same as POST /set. The body carries both key and value.",
        parameters=[KEY_PARAMETER],
        request=SetRequestSerializer,
        responses={
            200: OpenApiResponse(description="Plain text confirmation"),
            400: OpenApiResponse(description="Missing or empty key or value"),
            500: OpenApiResponse(description="Store failure"),
        },
        tags=["Key-Value Operations"],
    )
    def put(self, request, key: str = ""):
        return super().post(request)


class GetView(StoreView):
    """Return the raw value of a key."""

    @extend_schema(
        operation_id="get_key",
        summary="Read a value",
        description="Return the raw value bytes stored under the key.",
        parameters=[KEY_PARAMETER],
        responses={
            200: OpenApiResponse(description="Raw value bytes"),
            400: OpenApiResponse(description="Empty key"),
            404: OpenApiResponse(description="Key not found"),
            500: OpenApiResponse(description="Store failure"),
        },
        tags=["Key-Value Operations"],
    )
    def get(self, request, key: str = ""):
        value = get_value(self.store, key)
        return HttpResponse(value, content_type="application/octet-stream")


class DeleteView(StoreView):
    """Remove a key. Succeeds whether or not the key existed."""

    @extend_schema(
        operation_id="delete_key",
        summary="Delete a key/value pair",
        description="Remove the key in a single write transaction. Absent keys are not an error.",
        parameters=[KEY_PARAMETER],
        responses={
            200: OpenApiResponse(description="Plain text confirmation"),
            400: OpenApiResponse(description="Empty key"),
            500: OpenApiResponse(description="Store failure"),
        },
        tags=["Key-Value Operations"],
    )
    def delete(self, request, key: str = ""):
        delete_value(self.store, key)
        return text_response(f"Key '{key}' deleted successfully")


class ListView(StoreView):
    """Page through every entry in key order."""

    @extend_schema(
        operation_id="list_keys",
        summary="List key/value pairs",
        description=(
            "Return one page of all entries in ascending key order together with "
            "the total number of entries."
        ),
        parameters=PAGINATION_PARAMETERS,
        responses={
            200: OpenApiResponse(response=PageResultSerializer, description="One page of entries"),
            500: OpenApiResponse(description="Store failure"),
        },
        tags=["Listing"],
    )
    def get(self, request):
        result = list_entries(self.paginator, self.page_request(request))
        return Response(PageResultSerializer(result).data)


class SearchView(StoreView):
    """Page through the entries whose key contains a keyword."""

    @extend_schema(
        operation_id="search_keys",
        summary="Search keys by substring",
        description=(
            "Return one page of the entries whose key contains the keyword "
            "(case-sensitive) together with the total number of matches."
        ),
        parameters=[
            OpenApiParameter(
                name="keyword",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Substring the key must contain",
                required=True,
            ),
            *PAGINATION_PARAMETERS,
        ],
        responses={
            200: OpenApiResponse(response=PageResultSerializer, description="One page of matches"),
            400: OpenApiResponse(description="Missing keyword"),
            500: OpenApiResponse(description="Store failure"),
        },
        tags=["Listing"],
    )
    def get(self, request):
        keyword = request.query_params.get("keyword")
        result = search_entries(self.paginator, keyword, self.page_request(request))
        return Response(PageResultSerializer(result).data)
