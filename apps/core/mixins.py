# apps/core/mixins.py

import logging

from rest_framework import status
from rest_framework.response import Response

from .exceptions import CoreServiceError, PreconditionError

logger = logging.getLogger(__name__)


ERROR_STATUS = {
    'precondition': status.HTTP_400_BAD_REQUEST,
    'consistency': status.HTTP_409_CONFLICT,
    'aggregation': status.HTTP_500_INTERNAL_SERVER_ERROR,
    'internal': status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ServiceErrorMixin:
    """
    Mixin for API views that delegate to the academic services.
    Turns CoreServiceError into a {message, category} response.
    """

    def handle_exception(self, exc):
        if isinstance(exc, CoreServiceError):
            code = ERROR_STATUS.get(exc.category, status.HTTP_500_INTERNAL_SERVER_ERROR)
            if code >= 500:
                logger.error("%s failed: %s", self.__class__.__name__, exc)
            else:
                logger.warning("%s rejected: %s", self.__class__.__name__, exc)
            return Response({'message': exc.message, 'category': exc.category}, status=code)
        return super().handle_exception(exc)

    def validated_data(self, serializer_class, data):
        """Validate request data, rejecting it as a precondition failure."""
        serializer = serializer_class(data=data)
        if not serializer.is_valid():
            problems = '; '.join(
                f"{field}: {' '.join(str(error) for error in errors)}"
                for field, errors in serializer.errors.items()
            )
            raise PreconditionError(f"Invalid request. {problems}")
        return serializer.validated_data
