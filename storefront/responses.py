from rest_framework import status as http_status
from rest_framework.response import Response


def envelope(status=http_status.HTTP_200_OK, **payload) -> Response:
    """Successful response in the API envelope: ``{"success": true, **payload}``."""
    return Response({"success": True, **payload}, status=status)
