from .client import Client
from .resource import Resource, validates
from . import exceptions, fields, matching, schema, signals

__all__ = (
    'Client',
    'Resource',
    'validates',
    'exceptions',
    'fields',
    'matching',
    'schema',
    'signals',
)

__version__ = '0.1.0'
