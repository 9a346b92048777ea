# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Data types
# ==========
#
# A data type is one named node of a schema. It owns an immutable option
# set and knows how to find the effective value of a field, whether that
# value is present, and whether it is valid.
#
# - DataType: scalar base. Refs do not descend into it.
# - CompositeDataType: a data type whose value is a container that ref
#   chains can descend into. Subclasses supply the one-level hooks.
# - ListDataType: a persistent vector of items of one type.
# - RecordDataType: a persistent map of named children.
#
# Allowed options:
#
# |Name           |Type                        |Default|Description                                  |
# |---------------|----------------------------|-------|---------------------------------------------|
# |required       |bool                        |False  |Must have a value to pass validation.        |
# |unique         |bool                        |False  |Must be unique across all models.            |
# |generated      |bool                        |False  |The server fills in the value when missing.  |
# |excluded       |bool                        |False  |Left out of the externally visible model.    |
# |defaultValue   |any                         |       |Used when no value is supplied.              |
# |validator      |fn(value, root_value) -> bool|      |Custom check, run once the value is present. |
# |validationLinks|list of ref chains          |()     |Other fields to validate along with this one.|


from abc import ABCMeta, abstractmethod
from typing import *

from pyrsistent import pmap, pvector

from .context import Context
from .errors import (
    DEFAULT_MESSAGES,
    Messages,
    RefError,
    ResolveError,
    SchemaError,
    ValidationError,
)
from .options import (
    Options,
    S_defaultValue,
    S_excluded,
    S_generated,
    S_required,
    S_unique,
    S_validationLinks,
    S_validator,
)
from .refs import KeyRef, Ref
from .utility import (
    UNDEF,
    S_MT,
    getprop,
    isequal,
    islist,
    ismap,
    setprop,
    size,
    stringify,
    tonode,
)


class FieldValue(NamedTuple):
    field: Any
    value: Any


def _chain(refs: Any) -> Tuple[Ref, ...]:
    if refs is UNDEF:
        return ()
    if isinstance(refs, Ref):
        return (refs,)
    return tuple(refs)


class DataType:
    """
    The base data type. Every registered data type eventually inherits
    from this.
    """

    # The descriptor `type` this class is registered under.
    type_name = 'data'

    @classmethod
    def parse(cls, descriptor: Any, loader: Any) -> 'DataType':
        descriptor = tonode(descriptor)
        return cls(
            descriptor.get('name'),
            cls.parse_options(descriptor.get('options'), loader),
        )

    @classmethod
    def parse_options(cls, options: Any, loader: Any) -> Options:
        options = tonode(options)
        if options is UNDEF:
            return Options()

        links = options.get(S_validationLinks, UNDEF)
        if links is not UNDEF:
            options = options.set(
                S_validationLinks,
                tuple(loader.parse_refs(link) for link in links))

        return Options(options)

    def __init__(self, name: str, options: Any = UNDEF) -> None:
        """
        name: The name of this field, unique among its siblings.
        options: Settings for this field; see the table at the top of this file.
        """
        self.name = name
        self.options = Options(options)

    def get_name(self) -> str:
        return self.name

    def get_options(self) -> Options:
        return self.options

    def is_composite(self) -> bool:
        return False

    def is_list(self) -> bool:
        return False

    def is_required(self) -> bool:
        return bool(self.options.get(S_required, False))

    def is_unique(self) -> bool:
        return bool(self.options.get(S_unique, False))

    def is_generated(self) -> bool:
        return bool(self.options.get(S_generated, False))

    def is_excluded(self) -> bool:
        return bool(self.options.get(S_excluded, False))

    def get_default_value(self, fallback: Any = UNDEF) -> Any:
        return self.options.get(S_defaultValue, fallback)

    def get_validator(self) -> Optional[Callable[[Any, Any], bool]]:
        return self.options.get(S_validator, UNDEF)

    def get_validation_links(self) -> Tuple[Any, ...]:
        return tuple(self.options.get(S_validationLinks, ()))

    def has_value(self, value: Any, check_default: bool = True) -> bool:
        "True when the value is \"not empty\" (and, optionally, not the default)."
        if value is UNDEF:
            return False
        if check_default and isequal(value, self.get_default_value()):
            return False
        return True

    def get_value(self, value: Any, fallback_default: Any = UNDEF) -> Any:
        """
        The effective value. A missing value is filled in by the default,
        unless this field is generated, in which case generating it is the
        server's job.
        """
        if self.is_generated() or value is not UNDEF:
            return value
        return self.get_default_value(fallback_default)

    def get_display(self, value: Any) -> str:
        value = self.get_value(value)
        return S_MT if value is UNDEF else stringify(value)

    def validate(
        self,
        value: Any,
        callback: Optional[Callable[[], Optional[ValidationError]]] = UNDEF,
        messages: Optional[Messages] = UNDEF,
    ) -> Optional[ValidationError]:
        """
        Check the value against the presence rules of this field. Returns a
        ValidationError, or None when the value passes. The callback runs
        further checks once the value is known to be present.
        """
        value = self.get_value(value)
        default = self.get_default_value()

        if default is not UNDEF and isequal(value, default) and \
           self.has_value(value, False):
            return UNDEF

        if not self.has_value(value, False):
            if self.is_generated():
                return UNDEF
            if self.is_required():
                return ValidationError.of(
                    'required', self, value,
                    DEFAULT_MESSAGES if messages is UNDEF else messages)
            return UNDEF

        if callback is not UNDEF:
            return callback()

        return UNDEF

    def exclude(self, value: Any, deep: bool = True) -> Any:
        return UNDEF if self.is_excluded() else value

    def filter(self, filter_value: Any, row_value: Any) -> bool:
        return isequal(filter_value, row_value)

    def get_field(self, refs: Any = UNDEF) -> 'DataType':
        return self

    def get_field_and_value(self, value: Any, refs: Any = UNDEF,
                            context: Optional[Context] = UNDEF) -> FieldValue:
        return FieldValue(self, self.get_value(value))

    def __repr__(self):
        return f'{type(self).__name__}({self.name!r})'

    def __str__(self):
        return S_MT if self.name is UNDEF else str(self.name)


class CompositeDataType(DataType, metaclass=ABCMeta):
    """
    A data type whose value is a container. Ref chains descend through it
    one ref at a time: each level asks the current composite for the child
    field and child value of one ref, then carries on with the rest of the
    chain from the child. A chain that still has refs left when it reaches
    a scalar field cannot be resolved.

    A multi ref (filter, map) followed by more refs applies the rest of
    the chain to each selected item.
    """

    type_name = S_MT

    def is_composite(self):
        return True

    def has_value(self, value, check_default=True):
        if not super().has_value(value, check_default):
            return False
        return 0 < size(value)

    def get_value(self, value, fallback_default=UNDEF, refs=UNDEF, context=UNDEF):
        value = super().get_value(value, fallback_default)
        if refs is not UNDEF:
            return self.get_field_and_value(value, refs, context).value
        return value

    # One-level hooks.

    @abstractmethod
    def get_child_field(self, ref: Ref) -> DataType:
        ...

    @abstractmethod
    def get_child_value(self, value: Any, ref: Ref, context: Context) -> Any:
        ...

    @abstractmethod
    def set_child_value(self, value: Any, ref: Ref, child_value: Any,
                        context: Context) -> Any:
        ...

    def set_child_values(self, value: Any, ref: Ref, refs: Tuple[Ref, ...],
                         new_value: Any, context: Context) -> Any:
        "Write through a multi ref followed by more refs."
        raise RefError(
            f'Cannot set "{ref}" followed by more refs on "{self.name}" '
            f'of data type "{type(self).__name__}"')

    # Chain descent.

    def get_field(self, refs=UNDEF):
        refs = _chain(refs)
        field = self

        for index, ref in enumerate(refs):
            if not field.is_composite():
                return self.get_next_field(field, refs[index:])
            field = field.get_child_field(ref)

        return field

    def get_field_and_value(self, value, refs=UNDEF, context=UNDEF):
        refs = _chain(refs)
        context = Context.of(context)
        field, value = self, DataType.get_value(self, value)

        for index, ref in enumerate(refs):
            if not field.is_composite():
                return self.get_next_field_and_value(
                    field, value, refs[index:], context)

            child_field = field.get_child_field(ref)
            child_value = field.get_child_value(value, ref, context)
            rest = refs[index + 1:]

            if ref.is_multi_ref() and rest:
                found = [self.get_next_field_and_value(
                    child_field, item, rest, context)
                    for item in (child_value or ())]
                return FieldValue(
                    self.get_next_field(child_field, rest),
                    pvector(item.value for item in found))

            field, value = child_field, child_field.get_value(child_value)

        return FieldValue(field, value)

    def set_value(self, value: Any, refs: Any, new_value: Any,
                  context: Optional[Context] = UNDEF) -> Any:
        """
        Return a new value with `new_value` written at the location of the
        ref chain. The given value is left as it was.
        """
        refs = _chain(refs)
        context = Context.of(context)

        if 0 == len(refs):
            return new_value

        # Walk down, remembering each level, then rebuild on the way up.
        levels = []
        field, current = self, DataType.get_value(self, value)
        result = new_value

        for index, ref in enumerate(refs):
            rest = refs[index + 1:]

            if not field.is_composite():
                result = self.set_next_value(
                    field, current, new_value, refs[index:], context)
                break

            if ref.is_multi_ref() and rest:
                result = field.set_child_values(
                    current, ref, rest, new_value, context)
                break

            levels.append((field, current, ref))
            child_field = field.get_child_field(ref)
            current = child_field.get_value(
                field.get_child_value(current, ref, context))
            field = child_field

        for field, current, ref in reversed(levels):
            result = field.set_child_value(current, ref, result, context)

        return result

    def get_next_field(self, field: DataType, refs: Any) -> DataType:
        refs = _chain(refs)
        if 0 == len(refs):
            return field
        if field is not UNDEF and field.is_composite():
            return field.get_field(refs)
        raise ResolveError(
            f'Cannot call "get_field" for "{getattr(field, "name", field)}" '
            f'of data type "{type(field).__name__}"')

    def get_next_field_and_value(self, field: DataType, value: Any, refs: Any,
                                 context: Optional[Context] = UNDEF) -> FieldValue:
        refs = _chain(refs)
        if 0 == len(refs):
            return FieldValue(field, value)
        if field is not UNDEF and field.is_composite():
            return field.get_field_and_value(value, refs, context)
        raise ResolveError(
            f'Cannot call "get_field_and_value" for '
            f'"{getattr(field, "name", field)}" of data type '
            f'"{type(field).__name__}"')

    def set_next_value(self, field: DataType, old_value: Any, new_value: Any,
                       refs: Any, context: Optional[Context] = UNDEF) -> Any:
        refs = _chain(refs)
        if 0 == len(refs):
            return new_value
        if field is not UNDEF and field.is_composite():
            return field.set_value(old_value, refs, new_value, context)
        raise ResolveError(
            f'Cannot call "set_value" for "{getattr(field, "name", field)}" '
            f'of data type "{type(field).__name__}"')

    def iter_children(self, value: Any) -> Iterator[Tuple[Ref, DataType, Any]]:
        "Each (ref, child field, child value) one level below this value."
        return iter(())


class ListDataType(CompositeDataType):
    "A list of items that all share one item type."

    type_name = 'list'

    @classmethod
    def parse(cls, descriptor, loader):
        descriptor = tonode(descriptor)
        item = descriptor.get('item', UNDEF)
        if item is UNDEF:
            raise SchemaError(
                f'List "{descriptor.get("name")}" needs an item descriptor')
        return cls(
            descriptor.get('name'),
            cls.parse_options(descriptor.get('options'), loader),
            loader.parse_field(item),
        )

    def __init__(self, name: str, options: Any = UNDEF,
                 item_type: DataType = UNDEF) -> None:
        super().__init__(name, options)
        if item_type is UNDEF:
            raise SchemaError(f'List "{name}" needs an item type')
        self.item_type = item_type

    def is_list(self):
        return True

    def get_item_type(self) -> DataType:
        return self.item_type

    def get_child_field(self, ref):
        if ref.is_list_ref():
            if ref.is_mapper():
                return DataType(ref.get_display())
            return self.item_type

        if isinstance(ref, KeyRef):
            return self if ref.is_identity() else self.item_type

        # A view over the whole list.
        return DataType(ref.get_display())

    def get_child_value(self, value, ref, context):
        return ref.get_value(self, value, context)

    def set_child_value(self, value, ref, child_value, context):
        if value is UNDEF:
            value = pvector()
        return ref.set_value(self, value, child_value, context)

    def set_child_values(self, value, ref, refs, new_value, context):
        if value is UNDEF:
            value = pvector()

        ref.check_valid_data(self, value)

        if ref.is_mapper():
            return ref.set_value(self, value, new_value, context)

        item_type = self.item_type
        return pvector(
            self.set_next_value(item_type, item, new_value, refs, context)
            if ref.matches(item_type, item, context) else item
            for item in value)

    def iter_children(self, value):
        if islist(value):
            for index, item in enumerate(value):
                yield KeyRef(index), self.item_type, item

    def exclude(self, value, deep=True):
        if self.is_excluded():
            return UNDEF
        if not deep or not islist(value):
            return value
        kept = (self.item_type.exclude(item, deep) for item in value)
        return pvector(item for item in kept if item is not UNDEF)

    def __repr__(self):
        return f'ListDataType({self.name!r}, item_type={self.item_type!r})'


class RecordDataType(CompositeDataType):
    "A record of named children, held as a persistent map."

    type_name = 'record'

    @classmethod
    def parse(cls, descriptor, loader):
        descriptor = tonode(descriptor)
        return cls(
            descriptor.get('name'),
            cls.parse_options(descriptor.get('options'), loader),
            [loader.parse_field(child)
             for child in descriptor.get('children', ())],
        )

    def __init__(self, name: str, options: Any = UNDEF,
                 children: Iterable[DataType] = ()) -> None:
        super().__init__(name, options)
        self.children = tuple(children)
        self._by_name = pmap({child.name: child for child in self.children})
        if len(self._by_name) != len(self.children):
            names = [child.name for child in self.children]
            dups = sorted({n for n in names if 1 < names.count(n)}, key=str)
            raise SchemaError(
                f'Record "{name}" has duplicate field names: '
                f'{", ".join(map(str, dups))}')

    def get_children(self) -> Tuple[DataType, ...]:
        return self.children

    def get_child(self, name: str) -> Optional[DataType]:
        return self._by_name.get(name, UNDEF)

    def get_child_field(self, ref):
        if ref.is_list_ref():
            raise RefError(
                f'Cannot reference record "{self.name}" with list ref "{ref}"')

        if isinstance(ref, KeyRef):
            if ref.is_identity():
                return self
            child = self.get_child(ref.key)
            if child is UNDEF:
                raise ResolveError(
                    f'Unknown field "{ref}" in record "{self.name}"')
            return child

        # A view over the whole record.
        return DataType(ref.get_display())

    def get_child_value(self, value, ref, context):
        return ref.get_value(self, value, context)

    def set_child_value(self, value, ref, child_value, context):
        if value is UNDEF:
            value = pmap()
        return ref.set_value(self, value, child_value, context)

    def iter_children(self, value):
        for child in self.children:
            yield KeyRef(child.name), child, getprop(value, child.name)

    def exclude(self, value, deep=True):
        if self.is_excluded():
            return UNDEF
        if not deep or not ismap(value):
            return value
        out = value
        for child in self.children:
            if child.name in value:
                out = setprop(out, child.name, child.exclude(value[child.name], deep))
        return out

    def __repr__(self):
        names = ', '.join(str(child.name) for child in self.children)
        return f'RecordDataType({self.name!r}, children=[{names}])'


__all__ = [
    'CompositeDataType',
    'DataType',
    'FieldValue',
    'ListDataType',
    'RecordDataType',
]
