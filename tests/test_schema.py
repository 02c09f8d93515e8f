from unittest import TestCase

from onesphere import fields
from onesphere.exceptions import ValidationError
from onesphere.schema import Schema, FieldSet


class SchemaTestCase(TestCase):

    def test_schema_class(self):
        class FooSchema(Schema):

            def __init__(self, schema):
                self._schema = schema

            def schema(self):
                return self._schema

        foo = FooSchema({
            "type": "object",
            "properties": {
                "name": {"type": "string", "minLength": 3},
                "properties": {
                    "type": "object",
                    "additionalProperties": {"type": "string"}
                }
            }
        })
        bar = FooSchema({"type": "boolean"})

        self.assertEqual(True, bar.validate(True))

        with self.assertRaises(ValidationError):
            bar.validate("True")

        self.assertEqual({
            "name": "Foo",
            "properties": {
                "is": "foo"
            }
        }, foo.validate({
            "name": "Foo",
            "properties": {
                "is": "foo"
            }
        }))

        with self.assertRaises(ValidationError) as cx:
            foo.validate({
                "name": "Foo",
                "properties": {
                    "age": 12
                }})

        self.assertEqual({
            'errors': [
                {
                    'path': ('properties', 'age'),
                    'validationOf': {'type': 'string'},
                    'message': "12 is not of type 'string'"
                }
            ],
            'message': 'Validation failed'
        }, cx.exception.as_dict())

    def test_schema_not_implemented(self):
        with self.assertRaises(NotImplementedError):
            Schema().validate(1)

    def test_fieldset_schema(self):
        fs = FieldSet({
            "name": fields.String(),
            "count": fields.Integer(),
        }, required_fields=('name',))

        self.assertEqual({
            "type": "object",
            "properties": {
                "count": {"type": "integer"},
                "name": {"type": "string"}
            },
            "required": ["name"]
        }, fs.schema())

    def test_fieldset_allows_additional_properties(self):
        fs = FieldSet({"name": fields.String()})
        data = {"name": "foo", "uri": "/rest/foo/1", "created": "2017-12-01T08:30:00Z"}
        self.assertEqual(data, fs.validate(data))

    def test_fieldset_required(self):
        fs = FieldSet({"name": fields.String()}, required_fields=('name',))

        with self.assertRaises(ValidationError) as cx:
            fs.validate({"description": "nameless"})

        self.assertEqual({'required': ['name']}, cx.exception.as_dict()['errors'][0]['validationOf'])

    def test_fieldset_validators(self):
        fs = FieldSet({"name": fields.String(), "count": fields.Integer()})
        validators = fs.validators()

        self.assertEqual({"name", "count"}, set(validators))
        validators["name"](None, "foo")

        with self.assertRaises(ValidationError) as cx:
            validators["count"](None, "many")

        self.assertEqual('count', cx.exception.root)
        self.assertEqual(('count',), cx.exception.as_dict()['errors'][0]['path'])
