"""Type mapping from classified descriptors to Python annotations"""

import re

from .types import (
    TypeDescriptor, PrimitiveType, UnitType, OptionalType, SequenceType,
    ResultType, ReferenceType, AggregateType, TypeParam,
)


class TypeMapper:
    """Maps descriptors to annotations used by the generated host and client modules"""

    PYTHON_TYPES = {
        'bool': 'bool',
        'char': 'str',
        'str': 'str',
        'String': 'str',
        'i8': 'int',
        'i16': 'int',
        'i32': 'int',
        'i64': 'int',
        'i128': 'int',
        'isize': 'int',
        'u8': 'int',
        'u16': 'int',
        'u32': 'int',
        'u64': 'int',
        'u128': 'int',
        'usize': 'int',
        'f32': 'float',
        'f64': 'float',
    }

    # Inclusive value ranges enforced on integers crossing the boundary
    INTEGER_RANGES = {
        'i8': (-2**7, 2**7 - 1),
        'i16': (-2**15, 2**15 - 1),
        'i32': (-2**31, 2**31 - 1),
        'i64': (-2**63, 2**63 - 1),
        'i128': (-2**127, 2**127 - 1),
        'isize': (-2**63, 2**63 - 1),
        'u8': (0, 2**8 - 1),
        'u16': (0, 2**16 - 1),
        'u32': (0, 2**32 - 1),
        'u64': (0, 2**64 - 1),
        'u128': (0, 2**128 - 1),
        'usize': (0, 2**64 - 1),
    }

    CHAR_TYPE = 'Annotated[str, Field(min_length=1, max_length=1)]'

    @classmethod
    def to_client(cls, desc: TypeDescriptor, constrained: bool = True) -> str:
        """
        Owned annotation; borrows are erased since the wire always copies.

        With ``constrained``, integers carry their width's range and ``char``
        its single-character length, so that pydantic rejects values the
        declared type cannot hold. Stub signatures use the plain form.
        """
        if isinstance(desc, PrimitiveType):
            if constrained and desc.name in cls.INTEGER_RANGES:
                lo, hi = cls.INTEGER_RANGES[desc.name]
                return f'Annotated[int, Field(ge={lo}, le={hi})]'
            if constrained and desc.name == 'char':
                return cls.CHAR_TYPE
            return cls.PYTHON_TYPES[desc.name]
        if isinstance(desc, UnitType):
            return 'None'
        if isinstance(desc, OptionalType):
            return f'Optional[{cls.to_client(desc.inner, constrained)}]'
        if isinstance(desc, SequenceType):
            return f'List[{cls.to_client(desc.element, constrained)}]'
        if isinstance(desc, ReferenceType):
            return cls.to_client(desc.referent, constrained)
        if isinstance(desc, ResultType):
            return cls.to_client(desc.ok, constrained)
        if isinstance(desc, AggregateType):
            if desc.args:
                return f"{desc.name}[{', '.join(cls.to_client(a, constrained) for a in desc.args)}]"
            return desc.name
        if isinstance(desc, TypeParam):
            return desc.name
        raise TypeError(f"not a type descriptor: {desc!r}")

    @classmethod
    def to_host(cls, desc: TypeDescriptor) -> str:
        """Host annotation; borrowed sequences become read-only tuples"""
        if isinstance(desc, ReferenceType):
            referent = desc.referent
            if isinstance(referent, SequenceType):
                return f'Tuple[{cls.to_host(referent.element)}, ...]'
            return cls.to_host(referent)
        if isinstance(desc, OptionalType):
            return f'Optional[{cls.to_host(desc.inner)}]'
        if isinstance(desc, SequenceType):
            return f'List[{cls.to_host(desc.element)}]'
        if isinstance(desc, ResultType):
            return cls.to_host(desc.ok)
        return cls.to_client(desc)

    @classmethod
    def payload(cls, desc: TypeDescriptor) -> TypeDescriptor:
        """Descriptor of the success payload on the wire"""
        if isinstance(desc, ResultType):
            return desc.ok
        return desc

    @classmethod
    def has_payload(cls, desc: TypeDescriptor) -> bool:
        return not isinstance(cls.payload(desc), UnitType)

    @classmethod
    def args_type_name(cls, command: str) -> str:
        """Name of the per-command argument type (``fetch_user`` -> ``FetchUserArgs``)"""
        words = re.split(r'_+', command.strip('_'))
        return ''.join(w[:1].upper() + w[1:] for w in words) + 'Args'

    @classmethod
    def constant_name(cls, command: str, suffix: str) -> str:
        """Module constant name (``fetch_user``, ``ARGS`` -> ``_FETCH_USER_ARGS``)"""
        return f'_{command.upper()}_{suffix}'
