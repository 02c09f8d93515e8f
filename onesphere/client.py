import logging
import os

import requests

from .exceptions import (
    InvalidClient,
    InvalidRequest,
    RequestError,
    BadRequest,
    Unauthorized,
    NotFound,
    Conflict,
    InvalidJSON,
    ConnectionFailed,
)
from .utils import to_text, to_log_level

SESSION_URI = '/rest/session'

ERRORS_BY_STATUS = {
    400: BadRequest,
    401: Unauthorized,
    404: NotFound,
    409: Conflict,
}


class Client(object):
    """
    A client for the OneSphere REST API.

    Either ``token`` or both ``user`` and ``password`` must be given. With credentials and no token,
    the client logs in immediately.

    :param str url: base URL of the appliance, e.g. ``https://onesphere.example.com``
    :param str token: an existing session token
    :param str user: user name used to log in
    :param str password: password used to log in
    :param bool ssl_enabled: whether to verify the TLS certificate of the appliance
    :param timeout: optional request timeout in seconds
    :param logging.Logger logger: logger to use; defaults to the ``onesphere`` logger
    :param log_level: optional level (name or number) set on the logger
    :param session: a :class:`requests.Session` or compatible object
    """

    def __init__(self, url, token=None, user=None, password=None, ssl_enabled=True, timeout=None,
                 logger=None, log_level=None, session=None):
        if not url:
            raise InvalidClient('Must set the url option')

        self.url = url.rstrip('/')
        self.user = user
        self.password = password
        self.token = token
        self.timeout = timeout
        self.logger = logger or logging.getLogger('onesphere')
        if log_level is not None:
            self.logger.setLevel(to_log_level(log_level))

        self.session = session if session is not None else requests.Session()
        self.ssl_enabled = ssl_enabled
        if not ssl_enabled:
            self.logger.warning('SSL is disabled for all requests to %s', self.url)
            self.session.verify = False

        if not token:
            if not (user and password):
                raise InvalidClient('Must set user & password options or token option')
            self.login()

    @classmethod
    def from_env(cls, environ=None, **overrides):
        """
        Create a client configured from ``ONESPHERE_*`` environment variables. Keyword arguments take
        precedence over the environment.

        ==========================  ===============
        Variable                    Option
        ==========================  ===============
        ``ONESPHERE_URL``           ``url``
        ``ONESPHERE_TOKEN``         ``token``
        ``ONESPHERE_USER``          ``user``
        ``ONESPHERE_PASSWORD``      ``password``
        ``ONESPHERE_SSL_ENABLED``   ``ssl_enabled``
        ``ONESPHERE_TIMEOUT``       ``timeout``
        ``ONESPHERE_LOG_LEVEL``     ``log_level``
        ==========================  ===============
        """
        environ = os.environ if environ is None else environ
        options = {}

        for option in ('url', 'token', 'user', 'password', 'log_level'):
            value = environ.get('ONESPHERE_{}'.format(option.upper()))
            if value:
                options[option] = value

        if environ.get('ONESPHERE_SSL_ENABLED'):
            options['ssl_enabled'] = environ['ONESPHERE_SSL_ENABLED'].strip().lower() not in ('0', 'false', 'no', 'off')

        if environ.get('ONESPHERE_TIMEOUT'):
            options['timeout'] = float(environ['ONESPHERE_TIMEOUT'])

        options.update(overrides)
        return cls(options.pop('url', None), **options)

    def login(self):
        """
        Open a session using the configured credentials and keep its token.

        :return: the session token
        """
        self.token = None
        response = self.rest_post(SESSION_URI, {'body': {'userName': self.user, 'password': self.password}})
        body = self.response_handler(response)
        self.token = body['token']
        self.logger.debug('Logged in to %s as %s', self.url, self.user)
        return self.token

    def logout(self):
        response = self.rest_delete(SESSION_URI)
        self.response_handler(response)
        self.token = None
        return True

    def _headers(self, options):
        headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        if self.token:
            headers['Authorization'] = self.token
        headers.update((key, to_text(value)) for key, value in options.items())
        return headers

    def _url(self, path):
        if path.startswith('http://') or path.startswith('https://'):
            return path
        if not path.startswith('/'):
            path = '/' + path
        return self.url + path

    def rest_api(self, method, path, options=None):
        """
        Make a request to the OneSphere API.

        :param str method: one of ``GET``, ``POST``, ``PUT``, ``PATCH``, ``DELETE``
        :param str path: path relative to the appliance URL, or an absolute URL
        :param dict options: request options; ``body`` is sent as JSON, every other key becomes a header
        :return: the raw response
        """
        method = method.upper()
        if method not in ('GET', 'POST', 'PUT', 'PATCH', 'DELETE'):
            raise InvalidRequest('Invalid rest method: {}. Valid methods are: GET, POST, PUT, PATCH, DELETE'.format(method))
        if not path:
            raise InvalidRequest('Must specify path')

        options = dict(options or {})
        body = options.pop('body', None)
        url = self._url(path)

        self.logger.debug('Making %s rest call to %s', method, url)
        try:
            return self.session.request(method, url, json=body, headers=self._headers(options), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ConnectionFailed('Could not connect to {}: {}'.format(url, e))

    def rest_get(self, path, options=None):
        return self.rest_api('GET', path, options)

    def rest_post(self, path, options=None):
        return self.rest_api('POST', path, options)

    def rest_put(self, path, options=None):
        return self.rest_api('PUT', path, options)

    def rest_patch(self, path, options=None):
        return self.rest_api('PATCH', path, options)

    def rest_delete(self, path, options=None):
        return self.rest_api('DELETE', path, options)

    def response_handler(self, response):
        """
        Parse the body of a successful response, or raise the matching :class:`RequestError` subclass.

        :return: the parsed JSON body; ``{}`` for empty bodies and ``204 No Content``
        """
        status = response.status_code

        if status in (200, 201, 202):
            if not response.content:
                return {}
            try:
                return response.json()
            except ValueError:
                raise InvalidJSON('Response body is not valid JSON: {}'.format(response.text[:200]), response=response)

        if status == 204:
            return {}

        error_class = ERRORS_BY_STATUS.get(status, RequestError)
        error = error_class(response=response)
        self.logger.debug('%s %s failed with %s: %s', getattr(response.request, 'method', ''),
                          getattr(response, 'url', ''), status, error.message)
        raise error

    def __repr__(self):
        return '<Client(url={})>'.format(self.url)
