# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Views
# =====
#
# A view is an expression evaluated against a (data type, value) pair.
# Full view languages live outside this package; the views here are the
# small set the ref parser needs to build predicates from shorthand:
#
# - ValueView: a constant.
# - DataView: the value found by following a ref from the owner.
# - ConditionView: a comparison between other views.
# - ViewId: a view named by id, resolved by the evaluator.
#
# Every view gets a process-unique id when constructed. Refs that carry
# views compare by that id, never by the view's contents.


from abc import ABC, abstractmethod
from typing import *
import itertools
import operator

from .context import Context
from .errors import SchemaError
from .utility import UNDEF, S_MT, isequal, isnode, stringify


_view_ids = itertools.count(1)


class View(ABC):
    type_name = ''

    def __init__(self, label: Any = UNDEF) -> None:
        self.label = label
        self.unique_id = next(_view_ids)

    def get_label(self) -> str:
        return S_MT if self.label is UNDEF else str(self.label)

    @abstractmethod
    def evaluate(self, context: Context, owner_type: Any, owner_value: Any) -> Any:
        ...

    def __str__(self):
        return self.get_label()

    def __repr__(self):
        return f'{type(self).__name__}({self.get_label()!r}, #{self.unique_id})'


class ValueView(View):
    type_name = 'value'

    def __init__(self, value: Any, label: Any = UNDEF) -> None:
        super().__init__(stringify(value) if label is UNDEF else label)
        self.value = value

    def evaluate(self, context, owner_type, owner_value):
        return self.value


class DataView(View):
    "Reads the owner value through a ref."

    type_name = 'data'

    def __init__(self, ref: Any, label: Any = UNDEF) -> None:
        super().__init__(str(ref) if label is UNDEF else label)
        self.ref = ref

    def evaluate(self, context, owner_type, owner_value):
        if owner_type is not UNDEF and owner_type.is_composite():
            return owner_type.get_field_and_value(
                owner_value, (self.ref,), context).value
        return self.ref.get_value(owner_type, owner_value, context)


def _coerce(a: Any, b: Any) -> Tuple[Any, Any]:
    # Shorthand payloads are strings; compare them as numbers against numbers.
    if isinstance(a, str) and isinstance(b, (int, float)) and not isinstance(b, bool):
        return float(a), b
    if isinstance(b, str) and isinstance(a, (int, float)) and not isinstance(a, bool):
        return a, float(b)
    return a, b


def loose_equal(a: Any, b: Any) -> bool:
    if isequal(a, b):
        return True
    if a is UNDEF or b is UNDEF or isnode(a) or isnode(b):
        return False
    return stringify(a) == stringify(b)


def _ordered(compare):
    def op(a, b):
        if a is UNDEF or b is UNDEF:
            return False
        try:
            return compare(*_coerce(a, b))
        except (TypeError, ValueError):
            return False
    return op


CONDITION_OPS = {
    '=': loose_equal,
    '!=': lambda a, b: not loose_equal(a, b),
    '<': _ordered(operator.lt),
    '<=': _ordered(operator.le),
    '>': _ordered(operator.gt),
    '>=': _ordered(operator.ge),
}


class ConditionView(View):
    """
    Compares the values of two argument views. Evaluates to `true_view`
    or `false_view` when given, else to the comparison result.
    """

    type_name = 'condition'

    def __init__(
        self,
        op: str,
        args: Sequence[View],
        true_view: Optional[View] = UNDEF,
        false_view: Optional[View] = UNDEF,
        label: Any = UNDEF,
    ) -> None:
        if op not in CONDITION_OPS:
            raise SchemaError(f'Unknown condition operator "{op}"')
        if 2 != len(args):
            raise SchemaError(
                f'Condition "{op}" needs 2 arguments, got {len(args)}')
        if label is UNDEF:
            label = f'{args[0].get_label()}{op}{args[1].get_label()}'
        super().__init__(label)
        self.op = op
        self.args = tuple(args)
        self.true_view = true_view
        self.false_view = false_view

    def evaluate(self, context, owner_type, owner_value):
        left, right = [context.evaluate(arg, owner_type, owner_value)
                       for arg in self.args]
        result = CONDITION_OPS[self.op](left, right)
        branch = self.true_view if result else self.false_view
        if branch is UNDEF:
            return result
        return context.evaluate(branch, owner_type, owner_value)


class ViewId(View):
    "A view known only by id; the evaluator's registry supplies it."

    type_name = 'viewId'

    def __init__(self, view_id: str) -> None:
        super().__init__(view_id)
        self.view_id = view_id

    def evaluate(self, context, owner_type, owner_value):
        return context.evaluate(self.view_id, owner_type, owner_value)


__all__ = [
    'CONDITION_OPS',
    'ConditionView',
    'DataView',
    'ValueView',
    'View',
    'ViewId',
    'loose_equal',
]
