from . import signals
from .exceptions import InvalidClient, IncompleteResource, MethodUnavailable
from .matching import like
from .schema import FieldSet
from .utils import AttributeDict, to_text

CLIENT_CONTRACT = ('rest_get', 'rest_post', 'rest_patch', 'rest_delete', 'response_handler')


def is_client(client):
    """
    Whether ``client`` can be used by a resource: it must have a ``logger`` and the REST verb and
    ``response_handler`` methods of :class:`onesphere.client.Client`.
    """
    if client is None or not hasattr(client, 'logger'):
        return False
    return all(callable(getattr(client, name, None)) for name in CLIENT_CONTRACT)


def validates(*keys):
    """
    Register the decorated method as the validator of one or more attributes. The method is called with the
    new value before it is stored and may raise to reject it.

    .. code-block:: python

        class Project(Resource):
            @validates('name')
            def validate_name(self, value):
                if not value:
                    raise ValueError('name must not be empty')
    """
    def decorator(fn):
        fn._validates = keys
        return fn
    return decorator


def unavailable(name):
    raise MethodUnavailable('The method #{} is unavailable for this resource'.format(name))


def _unavailable(name):
    def method(*args, **kwargs):
        unavailable(name)
    method.__name__ = name
    method._unavailable = True
    return method


def _is_unavailable(value):
    return callable(value) and getattr(value, '_unavailable', False)


def _available(class_, name):
    for base in class_.__mro__[1:]:
        value = base.__dict__.get(name)
        if value is not None and not _is_unavailable(value):
            return value
    raise AttributeError(name)


class ResourceMeta(type):

    def __new__(mcs, name, bases, members):
        class_ = super(ResourceMeta, mcs).__new__(mcs, name, bases, members)
        class_.meta = meta = AttributeDict(getattr(class_, 'meta', {}) or {})
        class_.validators = validators = {}
        for base in reversed(bases):
            if isinstance(base, ResourceMeta):
                validators.update(base.validators or {})

        meta_validators = {}
        for base in bases:
            if hasattr(base, 'Meta') and not isinstance(base, ResourceMeta):
                meta.update((k, v) for k, v in base.Meta.__dict__.items() if not k.startswith('__'))
                meta_validators.update(base.Meta.__dict__.get('validators') or {})

        if 'Meta' in members:
            changes = members['Meta'].__dict__
            for k, v in changes.items():
                if not k.startswith('__'):
                    meta[k] = v
            meta_validators.update(changes.get('validators') or {})

            if not changes.get('name', None):
                meta['name'] = name.lower()
        else:
            meta['name'] = name.lower()

        fields = {}
        declared = {}
        for base in bases:
            if isinstance(getattr(base, 'schema', None), FieldSet):
                fields.update(base.schema.fields)
            elif hasattr(base, 'Schema'):
                declared.update(base.Schema.__dict__)

        if 'Schema' in members:
            declared.update(members['Schema'].__dict__)

        declared = {k: f for k, f in declared.items() if not k.startswith('__')}
        fields.update(declared)
        if fields or meta.get('required_fields'):
            class_.schema = fs = FieldSet(fields, required_fields=meta.get('required_fields'))
            validators.update((k, v) for k, v in fs.validators().items() if k in declared)

        # inherited validators < own fields < own Meta.validators < @validates methods
        validators.update(meta_validators)

        for m in members.values():
            for key in getattr(m, '_validates', ()):
                validators[key] = m

        excluded = set(meta.get('exclude_operations') or ())
        for operation in excluded:
            setattr(class_, operation, _unavailable(operation))

        for base in class_.__mro__[1:]:
            for key, value in list(base.__dict__.items()):
                if _is_unavailable(value) and key not in excluded and getattr(class_, key) is value:
                    setattr(class_, key, _available(class_, key))

        return class_


class Resource(object, metaclass=ResourceMeta):
    """
    A local, mutable projection of one remote OneSphere entity.

    A resource type is configured using the `Meta` and (optionally) `Schema` attributes.

    :class:`Meta` class attributes:

    ======================  ==================  ===========================================================================
    Attribute name          Default             Description
    ======================  ==================  ===========================================================================
    name                    ---                 Name of the resource; defaults to the lower-case of the class name
    base_uri                ``'/rest'``         URI of the collection; items are created here and searched for here
    unique_identifiers      ``('name', 'uri')`` Ordered attribute names that each identify exactly one item; used by
                                                :meth:`retrieve` and :meth:`exists`
    default_request_header  ``{}``              Header options used by any request made without an explicit header
    required_fields         ``None``            Fields that must be set before the item can be created
    validators              ``{}``              A dictionary mapping attribute names to ``(resource, value)``
                                                validator functions
    exclude_operations      ``()``              A list of inherited operations (e.g. ``'update'``) that raise
                                                :class:`MethodUnavailable` for this resource
    ======================  ==================  ===========================================================================

    Fields declared in the `Schema` attribute validate any value written to the attribute of the same name.

    Usage example:

    .. code-block:: python

        class Project(Resource):
            class Schema:
                name = fields.String(min_length=1)
                tagUris = fields.Array(fields.Uri())

            class Meta:
                base_uri = '/rest/projects'
                required_fields = ('name',)

        project = Project(client, {'name': 'Example'})
        project.create()

    .. attribute:: meta

        A :class:`AttributeDict` of configuration attributes collected from the :class:`Meta` attributes of the
        base classes.

    .. attribute:: schema

        A :class:`FieldSet` containing fields collected from the :class:`Schema` attributes of the base classes.

    .. attribute:: validators

        The dictionary of attribute validators used by :meth:`set`.
    """
    meta = None
    schema = None
    validators = None

    class Meta:
        name = None
        base_uri = '/rest'
        unique_identifiers = ('name', 'uri')
        default_request_header = {}
        required_fields = None
        validators = {}
        exclude_operations = ()

    def __init__(self, client, params=None):
        """
        :param onesphere.client.Client client: client used for all requests of this resource
        :param params: initial attributes, a dictionary or another resource
        :raises InvalidClient: if ``client`` does not behave like a :class:`onesphere.client.Client`
        """
        if not is_client(client):
            raise InvalidClient('Must specify a valid client')
        self.client = client
        self.logger = client.logger
        self.data = {}
        self.set_all(params or {})

    @classmethod
    def _header(cls, header):
        if header is None:
            return dict(cls.meta.default_request_header or {})
        return header

    def _retrieval_keys(self):
        identifiers = self.meta.unique_identifiers
        keys = [key for key in identifiers if self.data.get(key) is not None]
        if not keys:
            raise IncompleteResource('Must set resource {} before trying to retrieve!'.format(' or '.join(identifiers)))
        return keys

    def retrieve(self, header=None):
        """
        Retrieve the item from OneSphere by one of its unique identifiers and merge its attributes.

        Identifiers are tried in the order of ``Meta.unique_identifiers``; the first search that finds exactly
        one item wins.

        :param dict header: header options for the request
        :raises IncompleteResource: if none of the unique identifiers is set
        :return: ``True`` if the item was found, ``False`` otherwise
        """
        for key in self._retrieval_keys():
            results = self.find_by(self.client, {key: self.data[key]}, header=header)
            if len(results) != 1:
                continue
            self.set_all(results[0])
            return True
        return False

    def exists(self, header=None):
        """
        Like :meth:`retrieve`, without changing this resource.

        :return: whether exactly one item matches one of the unique identifiers
        """
        for key in self._retrieval_keys():
            results = self.find_by(self.client, {key: self.data[key]}, header=header)
            if len(results) == 1:
                return True
        return False

    def set_all(self, params=None):
        """
        Set every key-value pair of ``params``; top-level keys are converted to strings.

        :param params: a dictionary or another resource
        :return: self
        """
        if isinstance(params, Resource):
            params = params.data
        params = {str(k): v for k, v in (params or {}).items()}
        for key, value in params.items():
            self.set(key, value)
        return self

    def set(self, key, value):
        """
        Set an attribute, running its validator (if any) first.
        """
        key = str(key)
        validator = self.validators.get(key)
        if validator is not None:
            validator(self, value)
        self.data[key] = value

    def get(self, key, default=None):
        return self.data.get(str(key), default)

    def items(self):
        return self.data.items()

    def __getitem__(self, key):
        return self.data.get(str(key))

    def __setitem__(self, key, value):
        self.set(key, value)

    def __contains__(self, key):
        return str(key) in self.data

    def __iter__(self):
        return iter(self.data)

    def __eq__(self, other):
        if type(other) is not type(self):
            return False
        return sorted(vars(self).items(), key=_first) == sorted(vars(other).items(), key=_first)

    __hash__ = None

    def like(self, other):
        """
        Whether this resource has every attribute of ``other`` with an equal value. Nested dictionaries are
        compared recursively, scalars by their textual form; attributes not present in ``other`` are ignored.

        :param other: a dictionary or another resource
        :raises TypeError: if ``other`` is not a dictionary or resource
        """
        if isinstance(other, Resource):
            other = other.data
        return like(other, self.data)

    def create(self, header=None):
        """
        Create the item on OneSphere from the current attributes and merge the attributes returned by the server,
        such as ``uri``.

        :return: self
        """
        self._ensure_client()
        if self.schema is not None:
            self.schema.validate(self.data)

        signals.before_create.send(self.__class__, item=self)
        options = dict(self._header(header))
        options['body'] = self.data
        self.logger.debug('Creating %s at %s', self.meta.name, self.meta.base_uri)
        response = self.client.rest_post(self.meta.base_uri, options)
        body = self.client.response_handler(response)
        self.set_all(body)
        signals.after_create.send(self.__class__, item=self)
        return self

    def create_or_replace(self, header=None):
        """
        Delete the item from OneSphere if it exists, then create it from the current attributes.

        This is not atomic: the existing item is gone before the new one is created, and the new item gets a
        new ``uri``.

        :return: self
        """
        existing = self.__class__(self.client, self.data)
        if existing.retrieve(header):
            existing.delete(header)
        return self.create(header)

    def refresh(self, header=None):
        """
        Update this resource with the attributes of the item on OneSphere.

        :return: self
        """
        self._ensure_client()
        self._ensure_uri()
        response = self.client.rest_get(self.data['uri'], self._header(header))
        body = self.client.response_handler(response)
        self.set_all(body)
        return self

    def update(self, attributes=None, header=None):
        """
        Set ``attributes`` and save all attributes to OneSphere.

        The attributes are set locally before the request is made, and stay set if the request fails.

        :param dict attributes: attributes to add or change
        :return: self
        """
        self.set_all(attributes)
        self._ensure_client()
        self._ensure_uri()

        signals.before_update.send(self.__class__, item=self, changes=attributes or {})
        options = dict(self._header(header))
        options['body'] = self.data
        self.logger.debug('Updating %s %s', self.meta.name, self.data['uri'])
        response = self.client.rest_patch(self.data['uri'], options)
        body = self.client.response_handler(response)
        self.set_all(body)
        signals.after_update.send(self.__class__, item=self, changes=attributes or {})
        return self

    def delete(self, header=None):
        """
        Delete the item from OneSphere. This resource is not changed, but is stale afterwards.

        :return: ``True``; failed requests raise instead
        """
        self._ensure_client()
        self._ensure_uri()

        signals.before_delete.send(self.__class__, item=self)
        self.logger.debug('Deleting %s %s', self.meta.name, self.data['uri'])
        response = self.client.rest_delete(self.data['uri'], self._header(header))
        self.client.response_handler(response)
        signals.after_delete.send(self.__class__, item=self)
        return True

    @staticmethod
    def build_query(query_options):
        """
        Build a query string from a dictionary of attributes, in dictionary order.

        >>> Resource.build_query({'name': 'foo', 'state': ['Active', 'Pending']})
        "?name=foo&state='Active,Pending'"
        """
        if not query_options:
            return ''
        query_path = '?'
        for key, value in query_options.items():
            if isinstance(value, (list, tuple)) and value:
                value = "'{}'".format(','.join(to_text(v) for v in value))
            query_path += '&{}={}'.format(key, to_text(value))
        return query_path.replace('?&', '?', 1)

    @classmethod
    def find_by(cls, client, attributes, uri=None, header=None):
        """
        Search the collection for items with the given attribute values.

        The search is always made against ``Meta.base_uri``; ``uri`` is accepted but not used.

        :param onesphere.client.Client client:
        :param dict attributes: attribute names and values to filter by
        :param dict header: header options for the request
        :return: list of resources of this type
        """
        if uri is not None and uri != cls.meta.base_uri:
            client.logger.warning('find_by ignores uri %s; searching %s instead', uri, cls.meta.base_uri)
        uri = cls.meta.base_uri + cls.build_query(attributes)
        return [cls(client, member) for member in cls.find_with_pagination(client, uri, header)]

    @classmethod
    def iter_members(cls, client, uri, header=None):
        """
        Iterate the ``members`` of a paginated collection, requesting pages as needed.

        Stops at a page without ``members``, a page without ``nextPageUri``, or a page whose ``nextPageUri``
        points to itself.
        """
        header = cls._header(header)
        while True:
            response = client.rest_get(uri, header)
            body = client.response_handler(response)
            members = body.get('members')
            if members is None:
                return
            for member in members:
                yield member
            next_page = body.get('nextPageUri')
            if not next_page or next_page == body.get('uri'):
                return
            client.logger.debug('Following nextPageUri %s', next_page)
            uri = next_page

    @classmethod
    def find_with_pagination(cls, client, uri, header=None):
        """
        :return: list of the raw attribute dictionaries of every item in a paginated collection
        """
        return list(cls.iter_members(client, uri, header))

    @classmethod
    def get_all(cls, client, header=None):
        """
        :return: list of every item of this type
        """
        return cls.find_by(client, {}, cls.meta.base_uri, header)

    def _ensure_client(self):
        if not self.client:
            raise IncompleteResource('Please set client attribute before interacting with this resource')
        return True

    def _ensure_uri(self):
        if not self.data.get('uri'):
            raise IncompleteResource('Please set uri attribute before interacting with this resource')
        return True

    def __repr__(self):
        identifier = next((self.data[key] for key in self.meta.unique_identifiers if self.data.get(key) is not None),
                          None)
        return '<{}({!r})>'.format(self.__class__.__name__, identifier)


def _first(item):
    return item[0]
