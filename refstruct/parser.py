# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Ref parser and schema loader
# ============================
#
# parse_ref builds a single ref from any of:
# - a Ref (returned unchanged),
# - None (no ref),
# - a shorthand string `<code>:<payload>`:
#     r:<key>          key ref
#     q:<ref>=<value>  first list item where <ref> equals <value>
#     f:<ref>=<value>  all list items where <ref> equals <value>
#     m:<ref>          every list item mapped through <ref>
#     v:<viewId>       view ref over a view known by id
# - any other string or an integer (key ref),
# - a structured descriptor:
#     {type: 'value', value}
#     {type: 'view', view}
#     {type: 'list', value: {type: 'find'|'filter'|'map', finder|filter|mapper}}
#
# parse_refs builds a ref chain (a tuple of refs) from a dotted string or a
# sequence of ref inputs. Use a sequence when a shorthand payload contains
# a dot.
#
# SchemaLoader builds data types and views from descriptors, dispatching
# on their `type` through immutable registries.


from typing import *
import json
import logging

from pyrsistent import PVector, pmap

from .errors import RefParseError, SchemaError
from .refs import (
    KeyRef,
    ListFilterRef,
    ListFindRef,
    ListMapRef,
    Ref,
    ViewRef,
)
from .types import DataType, ListDataType, RecordDataType
from .utility import UNDEF, S_CN, S_DT, S_MT, ismap, stringify, tonode
from .views import ConditionView, DataView, ValueView, View, ViewId


logger = logging.getLogger(__name__)


S_type = 'type'
S_value = 'value'
S_view = 'view'
S_list = 'list'

# List op -> (descriptor key of its view, ref class).
LIST_REFS = pmap({
    'find': ('finder', ListFindRef),
    'filter': ('filter', ListFilterRef),
    'map': ('mapper', ListMapRef),
})


def lookup_view(payload: str, loader: Any = UNDEF) -> DataView:
    "A view that reads the value at a ref."
    return DataView(parse_ref(payload, loader), label=payload)


def equality_view(payload: str, loader: Any = UNDEF) -> ConditionView:
    "A view that is true when the value at `<ref>` equals `<value>`."
    ref, sep, value = payload.partition('=')
    if not sep:
        raise RefParseError(
            f'Invalid ref shorthand payload "{payload}": expected <ref>=<value>')

    return ConditionView(
        '=',
        (lookup_view(ref, loader), ValueView(value)),
        true_view=ValueView(True),
        false_view=ValueView(False),
        label=f'{ref}={value}',
    )


def _parse_shorthand(field: str, loader: Any) -> Ref:
    code = field[0]
    payload = field[2:]

    if 'r' == code:
        return KeyRef(payload)

    if 'q' == code:
        return ListFindRef(equality_view(payload, loader))

    if 'f' == code:
        return ListFilterRef(equality_view(payload, loader))

    if 'm' == code:
        return ListMapRef(lookup_view(payload, loader))

    if 'v' == code:
        return ViewRef(ViewId(payload))

    raise RefParseError(f'Invalid ref shorthand: "{field}"')


def parse_ref(field: Any, loader: Any = UNDEF) -> Optional[Ref]:
    if isinstance(field, Ref):
        return field

    if field is UNDEF:
        return UNDEF

    if isinstance(field, str):
        if 1 < len(field) and S_CN == field[1]:
            return _parse_shorthand(field, loader)
        return KeyRef(field)

    if isinstance(field, int) and not isinstance(field, bool):
        return KeyRef(field)

    field = tonode(field)
    if not ismap(field):
        raise RefParseError(f'Cannot parse a ref from: {stringify(field, 44)}')

    loader = DEFAULT_LOADER if loader is UNDEF else loader
    reftype = field.get(S_type)

    if S_value == reftype:
        return KeyRef(field.get(S_value, S_MT))

    if S_view == reftype:
        return ViewRef(loader.parse_view(field.get(S_view)))

    if S_list == reftype:
        refvalue = tonode(field.get(S_value))
        listtype = refvalue.get(S_type) if ismap(refvalue) else UNDEF
        if listtype not in LIST_REFS:
            raise RefParseError(f'Unknown list ref type "{listtype}"')
        viewkey, refclass = LIST_REFS[listtype]
        return refclass(loader.parse_view(refvalue.get(viewkey)))

    raise RefParseError(f'Unknown ref type "{reftype}"')


def parse_refs(path: Any, loader: Any = UNDEF) -> Tuple[Ref, ...]:
    "Build a ref chain."
    if path is UNDEF:
        return ()

    if isinstance(path, str):
        if S_MT == path:
            return ()
        return tuple(parse_ref(part, loader) for part in path.split(S_DT))

    if isinstance(path, (tuple, list, PVector)):
        return tuple(parse_ref(part, loader) for part in path)

    return (parse_ref(path, loader),)


def _parse_value_view(descriptor, loader):
    return ValueView(descriptor.get('value'), descriptor.get('label', UNDEF))


def _parse_data_view(descriptor, loader):
    ref = loader.parse_ref(descriptor.get('ref'))
    if ref is UNDEF:
        raise SchemaError('Data view needs a ref')
    return DataView(ref, descriptor.get('label', UNDEF))


def _parse_condition_view(descriptor, loader):
    def optional(key):
        found = descriptor.get(key, UNDEF)
        return UNDEF if found is UNDEF else loader.parse_view(found)

    return ConditionView(
        descriptor.get('op', '='),
        [loader.parse_view(arg) for arg in descriptor.get('args', ())],
        true_view=optional('trueType'),
        false_view=optional('falseType'),
        label=descriptor.get('label', UNDEF),
    )


DEFAULT_TYPES = pmap({
    cls.type_name: cls for cls in (DataType, ListDataType, RecordDataType)
})

DEFAULT_VIEWS = pmap({
    ValueView.type_name: _parse_value_view,
    DataView.type_name: _parse_data_view,
    ConditionView.type_name: _parse_condition_view,
})


class SchemaLoader:
    """
    Builds data types and views from descriptors. Registries are immutable:
    registering returns a new loader.
    """

    def __init__(self, types: Any = UNDEF, views: Any = UNDEF) -> None:
        self.types = DEFAULT_TYPES if types is UNDEF else pmap(types)
        self.views = DEFAULT_VIEWS if views is UNDEF else pmap(views)

    def register_type(self, cls: type, type_name: str = UNDEF) -> 'SchemaLoader':
        type_name = cls.type_name if type_name is UNDEF else type_name
        if not type_name:
            raise SchemaError(f'Data type {cls.__name__} has no type name')
        return SchemaLoader(self.types.set(type_name, cls), self.views)

    def register_view(self, type_name: str,
                      parser: Callable[[Any, 'SchemaLoader'], View]) -> 'SchemaLoader':
        return SchemaLoader(self.types, self.views.set(type_name, parser))

    def parse_field(self, descriptor: Any) -> DataType:
        descriptor = tonode(descriptor)
        if not ismap(descriptor):
            raise SchemaError(
                f'Field descriptor must be a mapping: {stringify(descriptor, 44)}')

        type_name = descriptor.get(S_type, DataType.type_name)
        cls = self.types.get(type_name, UNDEF)
        if cls is UNDEF:
            raise SchemaError(
                f'Unknown data type "{type_name}" for field '
                f'"{descriptor.get("name")}"')

        field = cls.parse(descriptor, self)
        logger.debug('Parsed field %r', field)
        return field

    def parse_options(self, cls: type, options: Any):
        return cls.parse_options(options, self)

    def parse_view(self, descriptor: Any) -> Optional[View]:
        if descriptor is UNDEF or isinstance(descriptor, View):
            return descriptor

        if isinstance(descriptor, str):
            return ViewId(descriptor)

        descriptor = tonode(descriptor)
        if not ismap(descriptor):
            raise SchemaError(
                f'View descriptor must be a mapping: {stringify(descriptor, 44)}')

        type_name = descriptor.get(S_type)
        parser = self.views.get(type_name, UNDEF)
        if parser is UNDEF:
            raise SchemaError(f'Unknown view type "{type_name}"')

        return parser(descriptor, self)

    def parse_ref(self, field: Any) -> Optional[Ref]:
        return parse_ref(field, self)

    def parse_refs(self, path: Any) -> Tuple[Ref, ...]:
        return parse_refs(path, self)

    def load(self, source: Any) -> DataType:
        "Load a schema from a descriptor, or from its JSON text."
        if isinstance(source, (str, bytes)):
            source = json.loads(source)
        return self.parse_field(source)


DEFAULT_LOADER = SchemaLoader()


def parse_field(descriptor: Any) -> DataType:
    return DEFAULT_LOADER.parse_field(descriptor)


__all__ = [
    'DEFAULT_LOADER',
    'SchemaLoader',
    'equality_view',
    'lookup_view',
    'parse_field',
    'parse_ref',
    'parse_refs',
]
