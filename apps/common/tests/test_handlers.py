from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated, ValidationError

from apps.common.exceptions import InvalidTransitionError, NotFoundError
from apps.common.handlers import canteen_exception_handler


class TestCanteenExceptionHandler:

    def test_canteen_error_with_details(self):
        exc = InvalidTransitionError('Cannot move from pending to completed.', allowed_transitions=['preparing'])

        response = canteen_exception_handler(exc, {})

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data == {
            'error': {
                'code': 'invalid_transition',
                'message': 'Cannot move from pending to completed.',
                'details': {'allowed_transitions': ['preparing']},
            }
        }

    def test_canteen_error_default_message(self):
        response = canteen_exception_handler(NotFoundError(), {})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['error']['code'] == 'not_found'
        assert response.data['error']['details'] == {}

    def test_serializer_validation(self):
        exc = ValidationError({'amount': ['This field is required.']})

        response = canteen_exception_handler(exc, {})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'validation_error'
        assert response.data['error']['details'] == {'amount': ['This field is required.']}

    def test_django_404(self):
        response = canteen_exception_handler(Http404(), {})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['error']['code'] == 'not_found'

    def test_drf_exception_keeps_code(self):
        response = canteen_exception_handler(NotAuthenticated(), {})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error']['code'] == 'not_authenticated'

    def test_unexpected_error_is_opaque(self):
        response = canteen_exception_handler(KeyError('secret'), {})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data['error'] == {
            'code': 'internal_error',
            'message': 'An unexpected error occurred.',
            'details': {},
        }
        assert 'secret' not in str(response.data)
