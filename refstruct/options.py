# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Option set: the immutable bag of named settings attached to a data type.


from typing import *

from pyrsistent import PMap, freeze, pmap

from .utility import UNDEF, ismap


# Option names.
S_required = 'required'
S_unique = 'unique'
S_generated = 'generated'
S_excluded = 'excluded'
S_defaultValue = 'defaultValue'
S_validator = 'validator'
S_validationLinks = 'validationLinks'


class Options:
    """
    Immutable named settings. Values are frozen on the way in, so a
    `defaultValue` given as a dict compares equal to the same value held
    as a persistent map.
    """

    __slots__ = ('_opts',)

    def __init__(self, opts: Any = UNDEF) -> None:
        if opts is UNDEF:
            opts = pmap()
        elif isinstance(opts, Options):
            opts = opts._opts
        elif not ismap(opts):
            opts = pmap(opts)
        object.__setattr__(self, '_opts', pmap(
            {key: val if callable(val) else freeze(val)
             for key, val in opts.items()}))

    def __setattr__(self, name, value):
        raise AttributeError('Options are immutable')

    def get(self, name: str, alt: Any = UNDEF) -> Any:
        return self._opts.get(name, alt)

    def has(self, name: str) -> bool:
        return name in self._opts

    def set(self, name: str, value: Any) -> 'Options':
        "Return new options with one setting changed."
        return Options(self._opts.set(name, value))

    def asmap(self) -> PMap:
        return self._opts

    def __getitem__(self, name):
        return self._opts[name]

    def __contains__(self, name):
        return name in self._opts

    def __iter__(self):
        return iter(self._opts)

    def __len__(self):
        return len(self._opts)

    def __eq__(self, other):
        if not isinstance(other, Options):
            return NotImplemented
        return self._opts == other._opts

    def __hash__(self):
        return hash(self._opts)

    def __repr__(self):
        return f'Options({dict(self._opts)!r})'


__all__ = [
    'Options',
]
