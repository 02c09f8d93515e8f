from collections import OrderedDict
from functools import cached_property, partial

from jsonschema import Draft4Validator, FormatChecker
from jsonschema import ValidationError as SchemaValidationError

from .exceptions import ValidationError


class Schema(object):
    """
    The base class for all types with a JSON-schema in the client. Any class inheriting from schema needs to
    implement :meth:`schema`.
    """

    def schema(self):
        """
        Abstract method returning the JSON-schema used to validate values.
        """
        raise NotImplementedError()

    @cached_property
    def _validator(self):
        schema = self.schema()
        Draft4Validator.check_schema(schema)
        return Draft4Validator(schema, format_checker=FormatChecker())

    def validate(self, instance, root=None):
        """
        Validates a JSON-like value against :meth:`schema`.

        :param instance: value to validate
        :param root: name of the attribute the value belongs to, used in error paths
        :raises onesphere.exceptions.ValidationError: if validation failed
        :return: the value, unchanged
        """
        validator = self._validator
        try:
            validator.validate(instance)
        except SchemaValidationError:
            raise ValidationError(validator.iter_errors(instance), root=root)
        return instance


class FieldSet(Schema):
    """
    A schema representation of a dictionary of :class:`fields.Raw` objects.

    Additional properties are always allowed, since the server adds attributes of its own (``uri``,
    timestamps, ...) that a resource does not need to declare.

    :param dict fields: a dictionary of :class:`fields.Raw` objects
    :param required_fields: a list or tuple of field names that must be present before an item is created
    """

    def __init__(self, fields, required_fields=None):
        self.fields = fields
        self.required = set(required_fields or ())

    def schema(self):
        schema = {
            "type": "object",
            "properties": OrderedDict((key, field.schema()) for key, field in sorted(self.fields.items()))
        }
        if self.required:
            schema['required'] = sorted(self.required)
        return schema

    def validators(self):
        """
        :return: a dictionary mapping each field name to a ``(resource, value)`` validator function
        """
        return {key: partial(_validate_field, field, key) for key, field in self.fields.items()}


def _validate_field(field, key, resource, value):
    field.validate(value, root=key)
