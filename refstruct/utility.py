# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Node utilities
# ==============
#
# Small total functions over persistent (structurally shared) nodes. A
# node is a pyrsistent PMap (keyed) or PVector (indexed). None of these
# functions mutate their arguments: "setting" returns a new node that
# shares unchanged structure with the old one.
#
# - isnode, islist, ismap, iskey: identify value kinds.
# - isequal: equality that keeps booleans and numbers apart.
# - getprop: safely get a property value by key.
# - setprop: return a copy of a node with a property set (or removed).
# - size: size of a value (length for vectors and strings, count for maps).
# - strkey: string form of a key, so 0 and "0" name the same entry.
# - stringify: human-friendly string version of a value.
# - pathify: human-friendly string version of a ref chain.
# - tonode: freeze plain dicts and lists into persistent nodes.


from typing import *
import json
import math

from pyrsistent import PMap, PVector, freeze, thaw


# General strings.
S_MT = ''
S_DT = '.'
S_CN = ':'


# The standard undefined value for this language.
UNDEF = None


def isnode(val: Any = UNDEF) -> bool:
    "Value is a node - defined, and a persistent map or vector."
    return isinstance(val, (PMap, PVector))


def ismap(val: Any = UNDEF) -> bool:
    "Value is a defined persistent map."
    return isinstance(val, PMap)


def islist(val: Any = UNDEF) -> bool:
    "Value is a defined persistent vector with integer keys (indexes)."
    return isinstance(val, PVector)


def iskey(key: Any = UNDEF) -> bool:
    "Value is a defined string (non-empty) or integer key."
    if isinstance(key, str):
        return len(key) > 0
    # Exclude bool (which is a subclass of int)
    if isinstance(key, bool):
        return False
    if isinstance(key, int):
        return True
    return False


def size(val: Any = UNDEF) -> int:
    """Determine the size of a value (length for vectors/strings, count for maps)"""
    if val is UNDEF:
        return 0
    if isnode(val) or isinstance(val, (str, tuple)):
        return len(val)
    if isinstance(val, bool):
        return 1 if val else 0
    if isinstance(val, (int, float)):
        return math.floor(val)
    return 0


def strkey(key: Any = UNDEF) -> str:
    if key is UNDEF or isinstance(key, bool):
        return S_MT

    if isinstance(key, str):
        return key

    if isinstance(key, (int, float)):
        return str(int(key))

    return S_MT


def isequal(a: Any, b: Any) -> bool:
    "Equality that does not treat True as 1 or False as 0."
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def _index(val: PVector, key: Any) -> Optional[int]:
    # Integer, or a string that parses to a non-negative integer only.
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str) and key.isdigit():
        return int(key)
    return None


def getprop(val: Any = UNDEF, key: Any = UNDEF, alt: Any = UNDEF) -> Any:
    """
    Safely get a property of a node. Undefined arguments return alt,
    as does a key that is not found.
    """
    if val is UNDEF or key is UNDEF:
        return alt

    out = UNDEF

    if ismap(val):
        out = val.get(key, UNDEF)

    elif islist(val):
        index = _index(val, key)
        if index is not None and 0 <= index < len(val):
            out = val[index]

    return alt if out is UNDEF else out


def setprop(parent: Any, key: Any, val: Any):
    """
    Return a copy of parent with a property set.
    - If `val` is UNDEF, the key is removed.
    - For vectors, an index equal to the length appends.
    - For vectors, an index past the end, or a key that is not an index,
      raises IndexError.
    - A key that is neither a non-empty string nor an integer raises
      TypeError when parent is a node.
    """
    if not iskey(key):
        if isnode(parent):
            raise TypeError(f"Invalid key: {stringify(key)}")
        return parent

    if ismap(parent):
        if val is UNDEF:
            return parent.discard(key)
        return parent.set(key, val)

    if islist(parent):
        index = _index(parent, key)
        if index is None:
            raise IndexError(f"Invalid index \"{key}\" for a list")

        if val is UNDEF:
            if 0 <= index < len(parent):
                return parent.delete(index)
            return parent

        if index == len(parent):
            return parent.append(val)

        if 0 <= index < len(parent):
            return parent.set(index, val)

        raise IndexError(
            f"Index {index} is out of range for a list of size {len(parent)}")

    return parent


def tonode(val: Any = UNDEF) -> Any:
    "Freeze plain dicts and lists into persistent nodes. Nodes pass through."
    if isnode(val):
        return val
    if isinstance(val, (dict, list)):
        return freeze(val)
    return val


def stringify(val: Any, maxlen: int = UNDEF):
    "Safely stringify a value for printing (NOT JSON!)."

    valstr = S_MT

    if val is UNDEF:
        return valstr

    if isinstance(val, str):
        valstr = val
    else:
        try:
            plain = thaw(val) if isnode(val) else val
            valstr = json.dumps(plain, sort_keys=True, separators=(',', ':'))
            valstr = valstr.replace('"', '')
        except (TypeError, ValueError):
            valstr = str(val)

    if maxlen is not UNDEF:
        json_len = len(valstr)
        valstr = valstr[:maxlen]

        if 3 < maxlen < json_len:
            valstr = valstr[:maxlen - 3] + '...'

    return valstr


def pathify(refs: Any = UNDEF) -> str:
    "Human-friendly form of a ref chain, for messages."
    if refs is UNDEF:
        return '<root>'

    if not isinstance(refs, (tuple, list, PVector)):
        refs = (refs,)

    if 0 == len(refs):
        return '<root>'

    return S_DT.join(str(ref) for ref in refs)


__all__ = [
    'UNDEF',
    'getprop',
    'isequal',
    'iskey',
    'islist',
    'ismap',
    'isnode',
    'pathify',
    'setprop',
    'size',
    'stringify',
    'strkey',
    'tonode',
]
