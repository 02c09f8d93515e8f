from http import HTTPStatus


class OneSphereException(Exception):
    pass


class InvalidClient(OneSphereException):
    pass


class InvalidRequest(OneSphereException):
    pass


class IncompleteResource(OneSphereException):
    pass


class MethodUnavailable(OneSphereException):
    pass


class ValidationError(OneSphereException):
    """
    Raised when a value does not satisfy the JSON-schema of a field.

    :param errors: iterable of :class:`jsonschema.ValidationError`
    :param root: optional name of the attribute that was validated
    """

    def __init__(self, errors, root=None):
        self.errors = list(errors)
        self.root = root
        super(ValidationError, self).__init__(self._summary())

    def _summary(self):
        messages = '; '.join(error.message for error in self.errors)
        if self.root is not None:
            return 'Invalid value for {}: {}'.format(self.root, messages)
        return 'Invalid value: {}'.format(messages)

    def _complete_path(self, error):
        path = tuple(error.absolute_path)
        if self.root is not None:
            return (self.root,) + path
        return path

    def _format_errors(self):
        for error in self.errors:
            yield {
                'validationOf': {error.validator: error.validator_value},
                'path': self._complete_path(error),
                'message': error.message
            }

    def as_dict(self):
        return {
            'message': 'Validation failed',
            'errors': list(self._format_errors())
        }


class RequestError(OneSphereException):
    """
    Raised for a non-success response (or a failed request) from the OneSphere API.

    :param message: human readable message; falls back to the ``message`` of the response body
        or the HTTP reason phrase
    :param response: the raw response object, if any
    """
    status_code = None

    def __init__(self, message=None, response=None):
        self.response = response
        if response is not None and getattr(response, 'status_code', None) is not None:
            self.status_code = response.status_code
        self.message = message or self._message_from_response() or self._reason()
        super(RequestError, self).__init__(self.message)

    def _message_from_response(self):
        if self.response is None:
            return None
        try:
            body = self.response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get('message')
        return None

    def _reason(self):
        try:
            return HTTPStatus(self.status_code).phrase
        except ValueError:
            return 'Request failed'

    def as_dict(self):
        return {
            'status': self.status_code,
            'message': self.message
        }


class BadRequest(RequestError):
    status_code = 400


class Unauthorized(RequestError):
    status_code = 401


class NotFound(RequestError):
    status_code = 404


class Conflict(RequestError):
    status_code = 409


class InvalidJSON(RequestError):
    pass


class ConnectionFailed(RequestError):
    pass
