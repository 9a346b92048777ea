# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Errors
# ======
#
# Two kinds of failure:
# - ValidationError: a data problem. Returned as a value from validation,
#   never raised, and collected per ref chain by the Validator.
# - SchemaError and subclasses: a contract problem in schema construction
#   or usage (bad ref syntax, a ref that does not fit its value, a write
#   through a read-only ref). Raised immediately.


from typing import *

from pydantic import BaseModel, ConfigDict


class Messages(BaseModel):
    """
    The catalog of validation messages, keyed by error kind.

    Instances are frozen. To change a message, build a new catalog with
    `override` and pass it to `Validator(messages=...)` or
    `DataType.validate(messages=...)`:

        messages = DEFAULT_MESSAGES.override(required='Please fill this in')
    """

    required: str = 'This field is required'
    undefinedValue: str = 'This field is in a bad state. Please change the value and try again'
    invalidOption: str = 'The value selected does not exist'
    integer: str = 'This field must be an integer'
    finite: str = 'This field must be a finite number'
    email: str = 'This field must be an email address'
    url: str = 'This field must be a URL'
    ssn: str = 'This field must be a valid SSN'
    tel: str = 'This field must be a valid US telephone number'
    zipCode: str = 'This field must be a valid US Zip Code'
    singleline: str = 'This field must contain just one line of text'
    invalid: str = 'This field is invalid'

    model_config = ConfigDict(frozen=True, extra='forbid')

    def get(self, kind: str) -> str:
        if kind not in type(self).model_fields:
            raise KeyError(f'Unknown validation message kind "{kind}"')
        return getattr(self, kind)

    def override(self, **kinds: str) -> 'Messages':
        "Return a new catalog with the given kinds replaced."
        unknown = sorted(set(kinds) - set(type(self).model_fields))
        if unknown:
            raise KeyError(
                f'Unknown validation message kinds: {", ".join(unknown)}')
        return self.model_copy(update=kinds)


DEFAULT_MESSAGES = Messages()


class ValidationError:
    """
    A single rule failure: the kind of rule, its message, the offending
    data type, and the offending value.
    """

    def __init__(
        self,
        kind: str,           # Catalog key, e.g. 'required'.
        message: str,        # Human readable message.
        field: Any,          # Offending data type.
        value: Any = None,   # Offending value.
    ) -> None:
        self.kind = kind
        self.message = message
        self.field = field
        self.value = value

    @classmethod
    def of(cls, kind: str, field: Any, value: Any = None,
           messages: Optional[Messages] = None) -> 'ValidationError':
        messages = DEFAULT_MESSAGES if messages is None else messages
        return cls(kind, messages.get(kind), field, value)

    def get_name(self) -> str:
        return getattr(self.field, 'name', '')

    def __eq__(self, other):
        if not isinstance(other, ValidationError):
            return NotImplemented
        return (self.kind == other.kind and
                self.message == other.message and
                self.field is other.field and
                self.value == other.value)

    __hash__ = None

    def __str__(self):
        return self.message

    def __repr__(self):
        return (f'ValidationError({self.kind!r}, field={self.get_name()!r}, '
                f'value={self.value!r})')


class SchemaError(ValueError):
    "A schema was built or used against its contract."


class ResolveError(SchemaError):
    "A ref chain cannot descend through a data type."


class RefError(SchemaError):
    "A ref does not fit the type or value it addresses, or cannot write."


class RefParseError(RefError):
    "A ref shorthand or descriptor is malformed."


__all__ = [
    'DEFAULT_MESSAGES',
    'Messages',
    'RefError',
    'RefParseError',
    'ResolveError',
    'SchemaError',
    'ValidationError',
]
