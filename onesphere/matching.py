"""
Partial matching of JSON-like values, as used by :meth:`Resource.like`.

Every value falls into one of three shapes: a keyed mapping, an ordered sequence or a scalar. A *template*
matches a *target* when every key declared in the template is satisfied by the target; extra keys in the
target are ignored.
"""
from collections import namedtuple
from collections.abc import Mapping
from enum import Enum

from .utils import to_text


class Shape(Enum):
    SCALAR = 'scalar'
    SEQUENCE = 'sequence'
    MAPPING = 'mapping'


class Value(namedtuple('Value', ('shape', 'raw'))):
    __slots__ = ()

    @classmethod
    def of(cls, raw):
        if isinstance(raw, Mapping):
            return cls(Shape.MAPPING, raw)
        if isinstance(raw, (list, tuple)):
            return cls(Shape.SEQUENCE, raw)
        return cls(Shape.SCALAR, raw)

    def get(self, key):
        if self.shape is not Shape.MAPPING:
            return Value.of(None)
        return Value.of(self.raw.get(str(key)))

    @property
    def is_sequence_of_mappings(self):
        return self.shape is Shape.SEQUENCE and len(self.raw) > 0 and isinstance(self.raw[0], Mapping)


def match(template, target):
    """
    :param Value template: must be a mapping
    :param Value target:
    :raises TypeError: if the template is not a mapping
    """
    if template.shape is not Shape.MAPPING:
        raise TypeError("Can't compare with object type: {}! Must be a mapping".format(type(template.raw).__name__))

    for key, raw in template.raw.items():
        if target.shape is not Shape.MAPPING:
            return False

        expected = Value.of(raw)
        actual = target.get(key)

        if expected.shape is Shape.MAPPING:
            if not match(expected, actual):
                return False
        elif expected.is_sequence_of_mappings:
            if actual.shape is not Shape.SEQUENCE:
                return False
            candidates = [Value.of(item) for item in actual.raw]
            for item in expected.raw:
                if not any(match(Value.of(item), candidate) for candidate in candidates):
                    return False
        elif to_text(expected.raw) != to_text(actual.raw):
            return False
    return True


def like(template, data):
    """
    Whether ``data`` contains everything declared in ``template``.

    Scalars are compared by their textual form, so ``{"a": 1}`` is like ``{"a": "1"}``. Each mapping in a
    sequence of mappings must match at least one item of the corresponding sequence in ``data``, in any order.
    """
    return match(Value.of(template), Value.of(data))
