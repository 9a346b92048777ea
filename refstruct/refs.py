# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Refs
# ====
#
# A ref addresses one location inside a value owned by a data type.
# Resolving a ref chain consumes one ref per level of nesting.
#
# |Ref          |Reads                        |Writes                      |
# |-------------|-----------------------------|----------------------------|
# |KeyRef       |value at key (or whole value)|set key (identity: no-op)   |
# |ViewRef      |view evaluated on the value  |read only                   |
# |ListFindRef  |first matching item          |replace first match, or add |
# |ListFilterRef|all matching items           |replace every match         |
# |ListMapRef   |every item through the view  |read only                   |
#
# Reads never modify their input. Writes return a new persistent value
# that shares unchanged structure with the old one.


from abc import ABC, abstractmethod
from typing import *
import logging

from pyrsistent import pvector

from .context import Context
from .errors import RefError
from .utility import (
    UNDEF,
    S_MT,
    getprop,
    islist,
    isnode,
    setprop,
    stringify,
    strkey,
)


logger = logging.getLogger(__name__)


class Ref(ABC):

    def is_list_ref(self) -> bool:
        return False

    def is_single_ref(self) -> bool:
        return True

    def is_multi_ref(self) -> bool:
        return not self.is_single_ref()

    @abstractmethod
    def get_value(self, data_type: Any, data_value: Any,
                  context: Optional[Context] = UNDEF) -> Any:
        ...

    @abstractmethod
    def set_value(self, data_type: Any, data_value: Any, child_value: Any,
                  context: Optional[Context] = UNDEF) -> Any:
        ...

    @abstractmethod
    def get_display(self) -> str:
        ...

    def __str__(self):
        return self.get_display()


class KeyRef(Ref):
    """
    Addresses a map key or a list index. The empty key is the whole value.
    Keys compare by string form: KeyRef(0) and KeyRef('0') are the same ref.
    """

    def __init__(self, key: Any = S_MT) -> None:
        self.key = key

    def is_identity(self) -> bool:
        return self.key is UNDEF or self.key == S_MT

    def get_value(self, data_type, data_value, context=UNDEF):
        if data_value is UNDEF:
            return UNDEF

        if self.is_identity():
            return data_value

        return getprop(data_value, self.key)

    def set_value(self, data_type, data_value, child_value, context=UNDEF):
        if data_value is UNDEF:
            raise RefError(
                f'Cannot set "{self.get_display()}" on an absent value')

        if self.is_identity():
            return data_value

        if not isnode(data_value):
            raise RefError(
                f'Cannot set "{self.get_display()}" on a non-container value: '
                f'{stringify(data_value, 44)}')

        try:
            return setprop(data_value, self.key, child_value)
        except (IndexError, TypeError) as err:
            raise RefError(f'Cannot set "{self.get_display()}": {err}') from err

    def get_display(self):
        return S_MT if self.key is UNDEF else str(self.key)

    def __eq__(self, other):
        if not isinstance(other, KeyRef):
            return NotImplemented
        return strkey(self.key) == strkey(other.key)

    def __hash__(self):
        return hash(strkey(self.key))

    def __repr__(self):
        return f'KeyRef({self.key!r})'


class ViewBearingRef(Ref):
    "A ref that carries a view. Identity is the view's unique id."

    def __init__(self, view: Any = UNDEF) -> None:
        self.view = view

    def get_view_id(self):
        return getattr(self.view, 'unique_id', id(self.view))

    def get_display(self):
        if self.view is UNDEF:
            return S_MT
        label = getattr(self.view, 'get_label', UNDEF)
        return label() if callable(label) else str(self.view)

    def __eq__(self, other):
        if not isinstance(other, ViewBearingRef):
            return NotImplemented
        return self.get_view_id() == other.get_view_id()

    def __hash__(self):
        return hash(self.get_view_id())

    def __repr__(self):
        return f'{type(self).__name__}({self.get_display()!r})'


class ViewRef(ViewBearingRef):
    "A read-only projection of the value through a view."

    def get_value(self, data_type, data_value, context=UNDEF):
        if data_value is UNDEF or self.view is UNDEF:
            return data_value

        return Context.of(context).evaluate(self.view, data_type, data_value)

    def set_value(self, data_type, data_value, child_value, context=UNDEF):
        raise RefError(f'Cannot set a value through view ref "{self}"')


class ListRef(ViewBearingRef):
    """
    Base of the refs that select list items with a view. The owner type
    must be a list type and the value a persistent vector.
    """

    def is_list_ref(self):
        return True

    def is_finder(self) -> bool:
        return False

    def is_filterer(self) -> bool:
        return False

    def is_mapper(self) -> bool:
        return False

    def check_valid_data(self, data_type: Any, data_value: Any) -> None:
        if data_type is UNDEF or not data_type.is_list():
            raise RefError(
                f'Cannot reference a list with a non-list based data type '
                f'"{data_type}" (with {self!r})')

        if not islist(data_value):
            raise RefError(
                f'Cannot reference a non-list with a list ref of "{self}": '
                f'{stringify(data_value, 44)}')

    def apply_view(self, item_type: Any, item: Any, context: Context) -> Any:
        return context.evaluate(self.view, item_type, item)

    def matches(self, item_type: Any, item: Any, context: Context) -> bool:
        return bool(self.apply_view(item_type, item, context))

    def get_value(self, data_type, data_value, context=UNDEF):
        self.check_valid_data(data_type, data_value)

        if self.view is UNDEF:
            return data_value

        return self.select(data_type.get_item_type(), data_value,
                           Context.of(context))

    @abstractmethod
    def select(self, item_type: Any, items: Any, context: Context) -> Any:
        ...

    def check_writable(self, data_type, data_value, child_value):
        self.check_valid_data(data_type, data_value)

        if self.view is UNDEF:
            raise RefError(f'Cannot set list items without a view ({self!r})')

        if islist(child_value):
            logger.warning(
                'Setting each list item of "%s" to be a list. This may be due '
                'to using multiple list refs in one chain.', data_type.name)


class ListFindRef(ListRef):
    "Single: the first item that matches the view."

    def is_finder(self):
        return True

    def find_index(self, item_type, items, context) -> int:
        for index, item in enumerate(items):
            if self.matches(item_type, item, context):
                return index
        return -1

    def select(self, item_type, items, context):
        index = self.find_index(item_type, items, context)
        return UNDEF if index < 0 else items[index]

    def set_value(self, data_type, data_value, child_value, context=UNDEF):
        self.check_writable(data_type, data_value, child_value)

        index = self.find_index(
            data_type.get_item_type(), data_value, Context.of(context))

        if 0 <= index:
            return data_value.set(index, child_value)

        return data_value.append(child_value)


class ListFilterRef(ListRef):
    "Multi: every item that matches the view, in order."

    def is_single_ref(self):
        return False

    def is_filterer(self):
        return True

    def select(self, item_type, items, context):
        return pvector(item for item in items
                       if self.matches(item_type, item, context))

    def set_value(self, data_type, data_value, child_value, context=UNDEF):
        self.check_writable(data_type, data_value, child_value)

        item_type = data_type.get_item_type()
        context = Context.of(context)

        return pvector(
            child_value if self.matches(item_type, item, context) else item
            for item in data_value)


class ListMapRef(ListRef):
    "Multi: every item transformed by the view. Read only."

    def is_single_ref(self):
        return False

    def is_mapper(self):
        return True

    def select(self, item_type, items, context):
        return pvector(self.apply_view(item_type, item, context)
                       for item in items)

    def set_value(self, data_type, data_value, child_value, context=UNDEF):
        raise RefError(f'Cannot set a value through map ref "{self}"')


__all__ = [
    'KeyRef',
    'ListFilterRef',
    'ListFindRef',
    'ListMapRef',
    'ListRef',
    'Ref',
    'ViewBearingRef',
    'ViewRef',
]
