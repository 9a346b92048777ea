# refstruct init

from .context import (
    Context,
    Evaluator,
)

from .errors import (
    DEFAULT_MESSAGES,
    Messages,
    RefError,
    RefParseError,
    ResolveError,
    SchemaError,
    ValidationError,
)

from .options import Options

from .parser import (
    DEFAULT_LOADER,
    SchemaLoader,
    parse_field,
    parse_ref,
    parse_refs,
)

from .refs import (
    KeyRef,
    ListFilterRef,
    ListFindRef,
    ListMapRef,
    ListRef,
    Ref,
    ViewRef,
)

from .types import (
    CompositeDataType,
    DataType,
    FieldValue,
    ListDataType,
    RecordDataType,
)

from .utility import (
    UNDEF,
    tonode,
)

from .validation import Validator

from .views import (
    ConditionView,
    DataView,
    ValueView,
    View,
    ViewId,
)


__all__ = [
    'CompositeDataType',
    'ConditionView',
    'Context',
    'DEFAULT_LOADER',
    'DEFAULT_MESSAGES',
    'DataType',
    'DataView',
    'Evaluator',
    'FieldValue',
    'KeyRef',
    'ListDataType',
    'ListFilterRef',
    'ListFindRef',
    'ListMapRef',
    'ListRef',
    'Messages',
    'Options',
    'RecordDataType',
    'Ref',
    'RefError',
    'RefParseError',
    'ResolveError',
    'SchemaError',
    'SchemaLoader',
    'UNDEF',
    'ValidationError',
    'Validator',
    'ValueView',
    'View',
    'ViewId',
    'ViewRef',
    'parse_field',
    'parse_ref',
    'parse_refs',
    'tonode',
]
