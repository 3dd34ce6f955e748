"""
Shared plumbing for the CRM API views.

Views receive the Backend handle as an as_view() init kwarg, build the
gateway they need from it, and turn GatewayResult values into responses.
Error bodies always have the shape {"detail", "code", "details"}.
"""
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from crm.gateway.base import GatewayError

STATUS_BY_CODE = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "invalid_stage": status.HTTP_400_BAD_REQUEST,
    "illegal_transition": status.HTTP_409_CONFLICT,
    "constraint_violation": status.HTTP_409_CONFLICT,
}

TRUE_VALUES = {"true", "1", "yes"}
FALSE_VALUES = {"false", "0", "no"}


def error_response(error: GatewayError) -> Response:
    return Response(
        error.as_dict(),
        status=STATUS_BY_CODE.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


def query_value(value):
    """Query string to filter value: booleans are parsed, blanks mean no filter."""
    if value is None or value == "":
        return None
    lowered = value.lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    return value


class CrmView(APIView):
    """Base view. `backend` is injected through as_view(backend=...)."""

    backend = None
    gateway_class = None
    serializer_class = None

    @property
    def gateway(self):
        return self.gateway_class(self.backend)

    def respond(self, result, serializer_class=None, many=False, status_code=status.HTTP_200_OK):
        if not result.ok:
            return error_response(result.error)
        if result.data is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        serializer_class = serializer_class or self.serializer_class
        if serializer_class is None:
            return Response(result.data, status=status_code)
        return Response(serializer_class(result.data, many=many).data, status=status_code)

    def parse_payload(self, serializer_class, data):
        """Validate a request body. Returns (validated_data, None) or (None, error response)."""
        serializer = serializer_class(data=data)
        if serializer.is_valid():
            return serializer.validated_data, None
        return None, error_response(GatewayError(
            "Invalid data", code="validation_error", details=serializer.errors,
        ))

    def filters_from(self, request, mapping: dict) -> dict:
        return {
            field: query_value(request.query_params.get(param))
            for param, field in mapping.items()
        }


class ListCreateView(CrmView):
    """GET lists rows (filtered through `query_filters`), POST creates one."""

    # query param -> gateway filter field
    query_filters: dict = {}

    def get(self, request):
        result = self.gateway.get_all(**self.filters_from(request, self.query_filters))
        return self.respond(result, many=True)

    def post(self, request):
        return self.respond(self.gateway.create(request.data), status_code=status.HTTP_201_CREATED)


class DetailView(CrmView):
    """
    GET / PATCH / DELETE one row.

    DELETE is destructive, so it needs ?confirm=true. Without it the row is
    left alone and a 428 carries the question to put to the user.
    """

    label_field = "name"

    def get(self, request, pk):
        return self.respond(self.gateway.get_by_id(pk))

    def patch(self, request, pk):
        return self.respond(self.gateway.update(pk, request.data))

    def delete(self, request, pk):
        gateway = self.gateway
        if query_value(request.query_params.get("confirm")) is not True:
            current = gateway.get_by_id(pk)
            if not current.ok:
                return error_response(current.error)
            label = getattr(current.data, self.label_field, None) or pk
            noun = gateway.model._meta.verbose_name
            return Response(
                {
                    "detail": f'Are you sure you want to delete {noun} "{label}"?',
                    "code": "confirmation_required",
                    "details": None,
                },
                status=status.HTTP_428_PRECONDITION_REQUIRED,
            )
        return self.respond(gateway.delete(pk))
