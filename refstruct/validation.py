# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Validator
# =========
#
# Runs a validation pass over a whole model, or over chosen ref chains,
# and collects every failure instead of stopping at the first one. The
# result maps each failing ref chain to its ValidationError.
#
# Chains named in a field's `validationLinks` option are validated along
# with that field. Links are chains from the root of the model.


from collections import deque
from typing import *
import logging

from .context import Context
from .errors import DEFAULT_MESSAGES, Messages, ValidationError
from .parser import parse_refs
from .refs import Ref
from .types import DataType
from .utility import UNDEF, pathify


logger = logging.getLogger(__name__)


Errors = Dict[Tuple[Ref, ...], ValidationError]


def _is_chain(refs: Any) -> bool:
    return isinstance(refs, tuple) and 0 < len(refs) and \
        all(isinstance(ref, Ref) for ref in refs)


class Validator:

    def __init__(
        self,
        root_type: DataType,
        messages: Optional[Messages] = UNDEF,
        context: Optional[Context] = UNDEF,
    ) -> None:
        self.root_type = root_type
        self.messages = DEFAULT_MESSAGES if messages is UNDEF else messages
        self.context = Context.of(context)

    def walk(self, root_value: Any) -> Iterator[Tuple[Ref, ...]]:
        "Every ref chain of the model: each field, parents before children."
        pending = deque([((), self.root_type, root_value)])

        while pending:
            refs, field, value = pending.popleft()
            yield refs

            if field.is_composite():
                value = field.get_value(value)
                for ref, child, child_value in field.iter_children(value):
                    pending.append((refs + (ref,), child, child_value))

    def validate_ref(self, root_value: Any, refs: Any) -> Optional[ValidationError]:
        "Validate the field at one ref chain."
        found = self.root_type.get_field_and_value(
            root_value, parse_refs(refs), self.context)
        field, value = found.field, found.value

        def check():
            validator = field.get_validator()
            if validator is not UNDEF and not validator(value, root_value):
                return ValidationError.of('invalid', field, value, self.messages)
            return UNDEF

        return field.validate(value, check, self.messages)

    def validate(self, root_value: Any, refs: Any = UNDEF) -> Errors:
        """
        Validate the model. With no refs, every field is validated. Else
        `refs` is a sequence of ref chains to validate, along with their
        validation links. A single chain may be given on its own, as a
        dotted string, a Ref, or a tuple of Refs.
        """
        if refs is UNDEF:
            pending = deque(self.walk(root_value))
        else:
            if isinstance(refs, (str, Ref)) or _is_chain(refs):
                refs = [refs]
            pending = deque(parse_refs(chain) for chain in refs)

        errors = {}
        seen = set()

        while pending:
            chain = pending.popleft()
            if chain in seen:
                continue
            seen.add(chain)

            error = self.validate_ref(root_value, chain)
            if error is not UNDEF:
                errors[chain] = error

            field = self.root_type.get_field(chain)
            for link in field.get_validation_links():
                pending.append(parse_refs(link))

        logger.debug('Validated %d fields of "%s": %d errors',
                     len(seen), self.root_type.name, len(errors))

        for chain, error in errors.items():
            logger.debug('  %s: %s', pathify(chain), error.kind)

        return errors

    def is_valid(self, root_value: Any) -> bool:
        return 0 == len(self.validate(root_value))

    def exclude(self, root_value: Any) -> Any:
        "The model as seen from outside: excluded fields removed."
        return self.root_type.exclude(root_value)


__all__ = [
    'Validator',
]
