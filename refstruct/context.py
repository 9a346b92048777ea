# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Resolution context and the view evaluator capability.
#
# Refs never build or interpret views themselves. Anything that needs a
# view evaluated (computed-view refs, list refs) asks the Context, which
# hands the view to its evaluator along with the caller's options.


from typing import *

from pyrsistent import freeze, pmap

from .errors import RefError
from .utility import UNDEF


class Evaluator:
    """
    Default view evaluator. Views are objects with an `evaluate(context,
    owner_type, owner_value)` method. A view may also be given by id, in
    which case it is looked up in the `views` registry.
    """

    def __init__(self, views: Optional[Mapping[str, Any]] = UNDEF) -> None:
        self.views = pmap(views or {})

    def lookup(self, view: Any) -> Any:
        view_id = getattr(view, 'view_id', view)
        if isinstance(view_id, str):
            found = self.views.get(view_id, UNDEF)
            if found is UNDEF:
                raise RefError(f'Unknown view id "{view_id}"')
            return found
        return view

    def evaluate(self, view: Any, owner_type: Any, owner_value: Any,
                 options: Any = UNDEF) -> Any:
        view = self.lookup(view)
        return view.evaluate(Context(self, options), owner_type, owner_value)


class Context:
    """
    Carries the evaluator and caller options through every ref operation.
    The evaluator may be an object with an `evaluate` method, or a plain
    function of `(view, owner_type, owner_value, options)`.
    """

    def __init__(self, evaluator: Any = UNDEF, options: Any = UNDEF) -> None:
        self.evaluator = Evaluator() if evaluator is UNDEF else evaluator
        self.options = pmap() if options is UNDEF else freeze(options)

    @classmethod
    def of(cls, context: Optional['Context'] = UNDEF) -> 'Context':
        return DEFAULT_CONTEXT if context is UNDEF else context

    def evaluate(self, view: Any, owner_type: Any, owner_value: Any) -> Any:
        evaluate = getattr(self.evaluator, 'evaluate', self.evaluator)
        return evaluate(view, owner_type, owner_value, self.options)


DEFAULT_CONTEXT = Context()


__all__ = [
    'Context',
    'DEFAULT_CONTEXT',
    'Evaluator',
]
