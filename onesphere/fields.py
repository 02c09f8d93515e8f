import aniso8601

from .exceptions import ValidationError
from .schema import Schema


class Raw(Schema):
    """
    This is the base class for all field types, can be given any JSON-schema.

    >>> f = fields.Raw({"type": "string"}, nullable=True)
    >>> f.schema()
    {'type': ['string', 'null']}

    :param schema: JSON-schema for field, or :class:`callable` resolving to a JSON-schema when called
    :param default: optional default value, must be JSON-convertible; may be a callable with no arguments
    :param nullable: whether the field is nullable.
    :param title: optional title for JSON schema
    :param description: optional description for JSON schema
    """

    def __init__(self, schema, default=None, nullable=False, title=None, description=None):
        self._schema = schema
        self._default = default
        self.nullable = nullable
        self.title = title
        self.description = description

    def _finalize_schema(self, schema):
        """
        :return: new schema updated for field `nullable`, `title`, `description` and `default` attributes.
        """
        schema = dict(schema)

        if "null" in schema.get("type", []):
            self.nullable = True
        elif self.nullable:
            # enum is independent of type validation:
            if "enum" in schema and None not in schema["enum"]:
                schema["enum"] = list(schema["enum"]) + [None]

            if "type" in schema:
                type_ = schema["type"]
                if isinstance(type_, (str, dict)):
                    schema["type"] = [type_, "null"]
                else:
                    schema["type"] = list(type_) + ["null"]
            elif "anyOf" in schema:
                if not any("null" in choice.get("type", []) for choice in schema["anyOf"]):
                    schema["anyOf"] = list(schema["anyOf"]) + [{"type": "null"}]
            elif "oneOf" in schema:
                if not any("null" in choice.get("type", []) for choice in schema["oneOf"]):
                    schema["oneOf"] = list(schema["oneOf"]) + [{"type": "null"}]
            else:
                schema = {"anyOf": [schema, {"type": "null"}]}

        for attr in ("default", "title", "description"):
            value = getattr(self, attr)
            if value is not None:
                schema[attr] = value
        return schema

    @property
    def default(self):
        if callable(self._default):
            return self._default()
        return self._default

    @default.setter
    def default(self, value):
        self._default = value

    def schema(self):
        """
        JSON schema representation
        """
        schema = self._schema
        if callable(schema):
            schema = schema()
        if isinstance(schema, Schema):
            schema = schema.schema()
        return self._finalize_schema(schema)

    def __repr__(self):
        return '{}({})'.format(self.__class__.__name__, self.schema())


class Any(Raw):
    """
    A field type that allows any value.
    """

    def __init__(self, **kwargs):
        super(Any, self).__init__({"type": ["null", "string", "number", "boolean", "object", "array"]}, **kwargs)


def _field_from_object(parent, cls_or_instance):
    if isinstance(cls_or_instance, type):
        container = cls_or_instance()
    else:
        container = cls_or_instance
    if not isinstance(container, Schema):
        raise RuntimeError('{} expected Raw or Schema, but got {}'.format(parent.__class__.__name__, container.__class__.__name__))
    if not isinstance(container, Raw):
        container = Raw(container)
    return container


class String(Raw):
    """
    :param int min_length: minimum length of string
    :param int max_length: maximum length of string
    :param str pattern: regex pattern that the string must match
    :param list enum: list of strings with enumeration
    """

    def __init__(self, min_length=None, max_length=None, pattern=None, enum=None, format=None, **kwargs):
        schema = {"type": "string"}

        for v, k in ((min_length, 'minLength'),
                     (max_length, 'maxLength'),
                     (pattern, 'pattern'),
                     (enum, 'enum'),
                     (format, 'format')):
            if v is not None:
                schema[k] = v

        super(String, self).__init__(schema, **kwargs)


class Uri(String):
    """
    A string holding a URI reference, e.g. ``/rest/projects/1234``.
    """

    def __init__(self, **kwargs):
        super(Uri, self).__init__(format="uri-reference", **kwargs)


class DateTimeString(String):
    """
    An ISO 8601 date-time string, e.g. ``2017-12-01T08:30:00Z``.
    """

    def __init__(self, **kwargs):
        super(DateTimeString, self).__init__(**kwargs)

    def validate(self, instance, root=None):
        instance = super(DateTimeString, self).validate(instance, root=root)
        if instance is not None:
            try:
                aniso8601.parse_datetime(instance)
            except ValueError:
                raise ValidationError([_DateTimeError(instance)], root=root)
        return instance


class _DateTimeError(object):
    # quacks like a jsonschema.ValidationError for ValidationError.as_dict()
    validator = 'format'
    validator_value = 'date-time'
    absolute_path = ()

    def __init__(self, instance):
        self.message = '{!r} is not a valid ISO 8601 date-time'.format(instance)


class Integer(Raw):
    """
    :param int minimum: minimum value
    :param int maximum: maximum value
    """

    def __init__(self, minimum=None, maximum=None, **kwargs):
        schema = {"type": "integer"}

        if minimum is not None:
            schema['minimum'] = minimum
        if maximum is not None:
            schema['maximum'] = maximum

        super(Integer, self).__init__(schema, **kwargs)


class Number(Raw):
    """
    :param float minimum: minimum value
    :param float maximum: maximum value
    """

    def __init__(self, minimum=None, maximum=None, **kwargs):
        schema = {"type": "number"}

        if minimum is not None:
            schema['minimum'] = minimum
        if maximum is not None:
            schema['maximum'] = maximum

        super(Number, self).__init__(schema, **kwargs)


class Boolean(Raw):

    def __init__(self, **kwargs):
        super(Boolean, self).__init__({"type": "boolean"}, **kwargs)


class Array(Raw):
    """
    A field for an array of a given field type.

    :param Raw cls_or_instance: field class or instance
    :param int min_items: minimum number of items
    :param int max_items: maximum number of items
    :param bool unique: whether the items must be unique
    """

    def __init__(self, cls_or_instance, min_items=None, max_items=None, unique=None, **kwargs):
        self.container = container = _field_from_object(self, cls_or_instance)

        schema_properties = [('type', 'array')]
        schema_properties += [(k, v) for k, v in (('minItems', min_items),
                                                  ('maxItems', max_items),
                                                  ('uniqueItems', unique)) if v is not None]

        def schema():
            schema = dict(schema_properties)
            schema['items'] = container.schema()
            return schema

        super(Array, self).__init__(schema, **kwargs)


class Object(Raw):
    """
    A field for an object with declared properties, or with values of a single field type.

    :param properties: a dictionary of field names to fields, or a field class or instance that all values
        must satisfy
    :param bool additional_properties: whether undeclared properties are allowed when ``properties`` is a dict
    """

    def __init__(self, properties=None, additional_properties=True, **kwargs):
        if isinstance(properties, dict):
            self.properties = {key: _field_from_object(self, field) for key, field in properties.items()}
            self.container = None
        elif properties is not None:
            self.properties = None
            self.container = _field_from_object(self, properties)
        else:
            self.properties = self.container = None

        def schema():
            schema = {"type": "object"}
            if self.properties is not None:
                schema['properties'] = {key: field.schema() for key, field in self.properties.items()}
                if not additional_properties:
                    schema['additionalProperties'] = False
            elif self.container is not None:
                schema['additionalProperties'] = self.container.schema()
            return schema

        super(Object, self).__init__(schema, **kwargs)
