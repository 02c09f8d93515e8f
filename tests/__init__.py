import itertools
import json
import logging
from collections import OrderedDict
from unittest import TestCase, mock
from urllib.parse import urlsplit, urlencode

import requests
from flask import Flask, jsonify, request

from onesphere import Client
from onesphere.utils import to_text

URL = 'https://onesphere.test'
TOKEN = 'f2c4b0a1-token'


def create_service(page_size=2):
    """
    An in-memory OneSphere REST API with paginated collections under ``/rest/<collection>``.

    Collections are filtered by exact attribute values from the query string (``'a,b'`` matches either
    value) and paginated with a ``start`` parameter.
    """
    app = Flask(__name__)
    app.config['PAGE_SIZE'] = page_size
    app.config['USERS'] = {'admin': 'secret'}
    app.config['ITEMS'] = items = {}
    ids = itertools.count(1)

    def error(code, message):
        response = jsonify({'status': code, 'message': message})
        response.status_code = code
        return response

    def collection_items(collection):
        return items.setdefault(collection, OrderedDict())

    def matches(item, where):
        return all(to_text(item.get(key)) in values for key, values in where.items())

    def parse_filter(value):
        if len(value) > 1 and value.startswith("'") and value.endswith("'"):
            return set(value[1:-1].split(','))
        return {value}

    def page_uri(collection, args, start):
        query = list(args)
        if start:
            query.append(('start', start))
        if not query:
            return '/rest/{}'.format(collection)
        return '/rest/{}?{}'.format(collection, urlencode(query, safe="',"))

    @app.before_request
    def authenticate():
        if request.path == '/rest/session' and request.method == 'POST':
            return None
        if request.headers.get('Authorization') != TOKEN:
            return error(401, 'Invalid or missing session token')

    @app.route('/rest/session', methods=['POST'])
    def login():
        data = request.get_json()
        if app.config['USERS'].get(data.get('userName')) != data.get('password'):
            return error(401, 'Invalid user name or password')
        return jsonify({'token': TOKEN, 'userUri': '/rest/users/{}'.format(data['userName'])})

    @app.route('/rest/session', methods=['DELETE'])
    def logout():
        return '', 204

    @app.route('/rest/<collection>', methods=['GET'])
    def instances(collection):
        size = app.config['PAGE_SIZE']
        start = request.args.get('start', 0, type=int)
        args = [(key, value) for key, value in request.args.items() if key != 'start']
        where = {key: parse_filter(value) for key, value in args}

        found = [item for item in collection_items(collection).values() if matches(item, where)]
        body = {
            'members': found[start:start + size],
            'total': len(found),
            'uri': page_uri(collection, args, start),
            'nextPageUri': page_uri(collection, args, start + size) if start + size < len(found) else None
        }
        return jsonify(body)

    @app.route('/rest/<collection>', methods=['POST'])
    def create(collection):
        data = request.get_json()
        if not data.get('name'):
            return error(400, 'name is required')
        if any(item.get('name') == data['name'] for item in collection_items(collection).values()):
            return error(409, 'An item named {} already exists'.format(data['name']))

        id = str(next(ids))
        item = dict(data, id=id, uri='/rest/{}/{}'.format(collection, id), created='2017-12-01T08:30:00Z')
        collection_items(collection)[id] = item
        response = jsonify(item)
        response.status_code = 201
        return response

    @app.route('/rest/<collection>/<id>', methods=['GET', 'PATCH', 'DELETE'])
    def instance(collection, id):
        item = collection_items(collection).get(id)
        if item is None:
            return error(404, 'Not found')

        if request.method == 'DELETE':
            del collection_items(collection)[id]
            return '', 204

        if request.method == 'PATCH':
            item.update((key, value) for key, value in request.get_json().items() if key not in ('id', 'uri'))
        return jsonify(item)

    return app


class FlaskSession(object):
    """
    Sends the requests of a :class:`onesphere.Client` to a Flask application, returning
    :class:`requests.Response` objects.
    """

    def __init__(self, app):
        self.test_client = app.test_client()
        self.requests = []
        self.verify = True

    def request(self, method, url, json=None, headers=None, timeout=None):
        parts = urlsplit(url)
        path = parts.path + ('?' + parts.query if parts.query else '')
        self.requests.append((method, path))

        rv = self.test_client.open(path, method=method, json=json, headers=headers)
        return make_response(rv.status_code, content=rv.get_data(), url=url)


def make_response(status_code, body=None, content=None, url=URL):
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.encoding = 'utf-8'
    if body is not None:
        content = json.dumps(body).encode('utf-8')
    response._content = content if content is not None else b''
    response.headers['Content-Type'] = 'application/json'
    return response


def mock_client():
    """
    A test double for :class:`onesphere.Client` whose ``response_handler`` passes bodies through, so that
    ``rest_*`` return values can be set to parsed bodies directly.
    """
    client = mock.Mock(spec=Client)
    client.logger = logging.getLogger('onesphere.tests')
    client.response_handler.side_effect = lambda response: response
    return client


class BaseTestCase(TestCase):

    def create_app(self):
        return create_service()

    def setUp(self):
        super(BaseTestCase, self).setUp()
        self.app = self.create_app()
        self.session = FlaskSession(self.app)
        self.client = Client(URL, token=TOKEN, session=self.session)

    def add_items(self, collection, *items):
        """
        Store items directly in the service, bypassing its validation.
        """
        stored = self.app.config['ITEMS'].setdefault(collection, OrderedDict())
        for item in items:
            stored[item['uri'].rsplit('/', 1)[-1]] = dict(item)

    def stored(self, collection):
        return list(self.app.config['ITEMS'].get(collection, {}).values())

    def assertJSONEqual(self, first, second, msg=None):
        self.assertEqual(json.loads(json.dumps(first)), json.loads(json.dumps(second)), msg)
