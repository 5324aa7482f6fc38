from typing import Any, NamedTuple, List, Dict, Optional

from abc import ABC, abstractmethod
from enum import Enum

import config
from util_bean import Bean


class SysgenError(RuntimeError):
    """
    Fatal error in the description, aborts the compilation of the
    architecture (and the whole run).
    """


class Dir(Enum):
    IN = 'in'
    OUT = 'out'
    INOUT = 'inout'

    @classmethod
    def parse(cls, token: str) -> 'Dir':
        for item in cls:
            if item.value == token:
                return item
        raise SysgenError('bad direction {}'.format(token))


class IntKind(Enum):
    PLAIN = 'plain'
    RANGE = 'range'
    FILEOFF = 'fileoff'
    SIGNALNO = 'signalno'


class BufferKind(Enum):
    BLOB_RAND = 'blob_rand'
    BLOB_RANGE = 'blob_range'
    STRING = 'string'
    ALG_TYPE = 'alg_type'
    ALG_NAME = 'alg_name'
    FILENAME = 'filename'


class ArrayKind(Enum):
    RAND_LEN = 'rand_len'
    RANGE_LEN = 'range_len'


class StructKey(NamedTuple):
    """
    Identity of a struct/union instance: the type, the field it is embedded
    as ('' for top-level usage) and the direction of the usage.
    """

    name: str
    field: str
    dir: Dir

    def __str__(self) -> str:
        return '{}-{}-{}'.format(self.name, self.field, self.dir.value)

    def export(self) -> Dict[str, str]:
        return {
            'name': self.name,
            'field': self.field,
            'dir': self.dir.value,
        }


# types
class Type(Bean, ABC):
    """
    A compiled argument or field, the common header of all IR nodes.
    """

    name: str
    dir: Dir
    optional: bool

    # defaults
    def default_optional(self) -> bool:
        return False

    # debug
    def dump(self) -> str:
        note = self.note()
        if len(note) != 0:
            note = '[' + note + ']'
        name = self.__class__.__name__
        if name.endswith('Type'):
            name = name[:-len('Type')]
        return name + note

    @abstractmethod
    def note(self) -> str:
        raise RuntimeError('Method not implemented')

    # export
    def export(self) -> Dict[str, Any]:
        info = {
            'type': self.__class__.__name__,
            'name': self.name,
            'dir': self.dir.value,
            'optional': self.optional,
        }  # type: Dict[str, Any]
        info.update(self.export_impl())
        return info

    @abstractmethod
    def export_impl(self) -> Dict[str, Any]:
        raise RuntimeError('Method not implemented')


class IntTypeCommon(Type, ABC):
    size: int
    big_endian: bool

    # defaults
    def default_big_endian(self) -> bool:
        return False

    # bean
    def validate(self) -> None:
        assert self.size in {1, 2, 4, 8}

    # export
    def export_impl(self) -> Dict[str, Any]:
        return {
            'size': self.size,
            'big_endian': self.big_endian,
        }


class IntType(IntTypeCommon):
    kind: IntKind
    range_begin: int
    range_end: int

    # defaults
    def default_kind(self) -> IntKind:
        return IntKind.PLAIN

    def default_range_begin(self) -> int:
        return 0

    def default_range_end(self) -> int:
        return 0

    # bean
    def validate(self) -> None:
        if self.kind == IntKind.SIGNALNO:
            assert self.size == 4

    # debug
    def note(self) -> str:
        if self.kind == IntKind.RANGE:
            return '{}:{}'.format(self.range_begin, self.range_end)
        if self.kind != IntKind.PLAIN:
            return self.kind.value
        return str(self.size)

    # export
    def export_impl(self) -> Dict[str, Any]:
        info = super().export_impl()
        info['kind'] = self.kind.value
        if self.kind == IntKind.RANGE:
            info['range'] = [self.range_begin, self.range_end]
        return info


class LenType(IntTypeCommon):
    buf: str
    # 0 counts elements, otherwise the granularity in bytes
    byte_size: int

    # bean
    def validate(self) -> None:
        assert self.byte_size in {0, 1, 2, 4, 8}

    # debug
    def note(self) -> str:
        return self.buf

    # export
    def export_impl(self) -> Dict[str, Any]:
        info = super().export_impl()
        info['buf'] = self.buf
        info['byte_size'] = self.byte_size
        return info


class FlagsType(IntTypeCommon):
    values: List[int]

    # bean
    def validate(self) -> None:
        assert len(self.values) != 0

    # debug
    def note(self) -> str:
        return ','.join(str(i) for i in self.values)

    # export
    def export_impl(self) -> Dict[str, Any]:
        info = super().export_impl()
        info['values'] = list(self.values)
        return info


class ConstType(IntTypeCommon):
    value: int

    # debug
    def note(self) -> str:
        return str(self.value)

    # export
    def export_impl(self) -> Dict[str, Any]:
        info = super().export_impl()
        info['value'] = self.value
        return info


class ProcType(IntTypeCommon):
    values_start: int
    values_per_proc: int

    # bean
    def validate(self) -> None:
        assert self.values_per_proc >= 1
        limit = 1 << (self.size * 8)
        assert self.values_start + \
            config.MAX_PIDS * self.values_per_proc < limit

    # debug
    def note(self) -> str:
        return '{}+{}'.format(self.values_start, self.values_per_proc)

    # export
    def export_impl(self) -> Dict[str, Any]:
        info = super().export_impl()
        info['values_start'] = self.values_start
        info['values_per_proc'] = self.values_per_proc
        return info


class BufferType(Type):
    kind: BufferKind
    sub_kind: str
    values: List[bytes]
    range_begin: int
    range_end: int

    # defaults
    def default_sub_kind(self) -> str:
        return ''

    def default_values(self) -> List[bytes]:
        return []

    def default_range_begin(self) -> int:
        return 0

    def default_range_end(self) -> int:
        return 0

    # bean
    def validate(self) -> None:
        if self.kind != BufferKind.STRING:
            assert len(self.values) == 0 and self.sub_kind == ''

    # debug
    def note(self) -> str:
        if self.kind == BufferKind.BLOB_RANGE:
            return '{}:{}'.format(self.range_begin, self.range_end)
        if self.kind == BufferKind.STRING and self.sub_kind != '':
            return self.sub_kind
        return self.kind.value

    # export
    def export_impl(self) -> Dict[str, Any]:
        info = {'kind': self.kind.value}  # type: Dict[str, Any]
        if self.kind == BufferKind.STRING:
            info['sub_kind'] = self.sub_kind
            info['values'] = [i.hex() for i in self.values]
        if self.kind == BufferKind.BLOB_RANGE:
            info['range'] = [self.range_begin, self.range_end]
        return info


class VmaType(Type):
    range_begin: int
    range_end: int

    # defaults
    def default_range_begin(self) -> int:
        return 0

    def default_range_end(self) -> int:
        return 0

    # debug
    def note(self) -> str:
        return '{}:{}'.format(self.range_begin, self.range_end)

    # export
    def export_impl(self) -> Dict[str, Any]:
        return {'range': [self.range_begin, self.range_end]}


class PtrType(Type):
    inner: Type

    # bean
    def validate(self) -> None:
        # pointers are always passed in, whatever they point to
        assert self.dir == Dir.IN

    # debug
    def note(self) -> str:
        return '{}, {}'.format(self.inner.dir.value, self.inner.dump())

    # export
    def export_impl(self) -> Dict[str, Any]:
        return {'inner': self.inner.export()}


class ArrayType(Type):
    inner: Type
    kind: ArrayKind
    range_begin: int
    range_end: int

    # defaults
    def default_kind(self) -> ArrayKind:
        return ArrayKind.RAND_LEN

    def default_range_begin(self) -> int:
        return 0

    def default_range_end(self) -> int:
        return 0

    # debug
    def note(self) -> str:
        if self.kind == ArrayKind.RANGE_LEN:
            return '{}, {}:{}'.format(
                self.inner.dump(), self.range_begin, self.range_end
            )
        return self.inner.dump()

    # export
    def export_impl(self) -> Dict[str, Any]:
        info = {
            'inner': self.inner.export(),
            'kind': self.kind.value,
        }  # type: Dict[str, Any]
        if self.kind == ArrayKind.RANGE_LEN:
            info['range'] = [self.range_begin, self.range_end]
        return info


class StructRef(Type):
    key: StructKey

    # debug
    def note(self) -> str:
        return str(self.key)

    # export
    def export_impl(self) -> Dict[str, Any]:
        return {'key': self.key.export()}


class UnionRef(StructRef):
    pass


class ResourceRef(Type):
    desc: str

    # debug
    def note(self) -> str:
        return self.desc

    # export
    def export_impl(self) -> Dict[str, Any]:
        return {'desc': self.desc}


# instances
class StructType(Type):
    """
    One instance of a struct in the arena, fields are filled in after all
    instances are registered.
    """

    key: StructKey
    packed: bool
    varlen: bool
    align: int
    fields: List[Type]

    # defaults
    def default_fields(self) -> List[Type]:
        return []

    # bean
    def validate(self) -> None:
        assert self.dir == self.key.dir
        assert self.align >= 0

    # debug
    def note(self) -> str:
        return ', '.join([i.dump() for i in self.fields])

    # export
    def export_impl(self) -> Dict[str, Any]:
        return {
            'key': self.key.export(),
            'packed': self.packed,
            'varlen': self.varlen,
            'align': self.align,
            'fields': [i.export() for i in self.fields],
        }


class UnionType(StructType):
    """
    Same as a struct instance, but the fields are alternatives.
    """

    # export
    def export_impl(self) -> Dict[str, Any]:
        info = super().export_impl()
        info['options'] = info.pop('fields')
        return info


# resources
class ResourceDesc(Bean):
    name: str
    kind: List[str]
    type: IntType
    values: List[int]

    # bean
    def validate(self) -> None:
        assert len(self.kind) != 0 and self.kind[-1] == self.name
        assert len(self.values) != 0

    # debug
    def dump(self) -> str:
        return '{}<{}>[{}]'.format(
            '/'.join(self.kind),
            self.type.dump(),
            ', '.join(str(i) for i in self.values)
        )

    # export
    def export(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'kind': list(self.kind),
            'type': self.type.export(),
            'values': list(self.values),
        }


# calls
class CallDesc(Bean):
    name: str
    call_name: str
    nr: int
    ret: Optional[Type]
    args: List[Type]
    # why the call is not available on the architecture, empty if it is
    reason: str

    # defaults
    def default_reason(self) -> str:
        return ''

    # bean
    def validate(self) -> None:
        if self.nr == config.NR_UNAVAILABLE:
            assert self.reason != ''
        else:
            assert self.nr >= 0 and self.reason == ''

    # status
    def available(self) -> bool:
        return self.nr != config.NR_UNAVAILABLE

    # debug
    def dump(self) -> str:
        return '{}({}){}'.format(
            self.name,
            ', '.join(['{}: {}'.format(i.name, i.dump()) for i in self.args]),
            '' if self.ret is None else ' -> {}'.format(self.ret.dump())
        )

    # export
    def export(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'call_name': self.call_name,
            'nr': self.nr,
            'reason': self.reason,
            'ret': None if self.ret is None else self.ret.export(),
            'args': [i.export() for i in self.args],
        }
