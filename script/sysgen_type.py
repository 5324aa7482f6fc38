from typing import NamedTuple, List, Dict, Tuple, Optional

import logging

from abc import ABC, abstractmethod

import config
from sysgen_basis import SysgenError, Dir, IntKind, BufferKind, ArrayKind, \
    StructKey, Type, IntType, LenType, FlagsType, ConstType, ProcType, \
    BufferType, VmaType, PtrType, ArrayType, StructRef, UnionRef, \
    ResourceRef, StructType
from sysgen_const import is_identifier, parse_int, lookup_const
from sysgen_flag import Unsupported
from sysgen_schema import Description


class Scope(object):
    """
    Everything a type can be resolved against on one architecture.
    """

    def __init__(
            self,
            arch: str,
            desc: Description,
            consts: Dict[str, int],
            unsupported: Optional[Unsupported] = None,
    ) -> None:
        self.arch = arch
        self.desc = desc
        self.consts = consts
        self.unsupported = Unsupported(arch) if unsupported is None \
            else unsupported

        # struct and union instances, populated by the instancer
        self.arena = {}  # type: Dict[StructKey, StructType]


class Context(NamedTuple):
    parent: str
    name: str
    dir: Dir
    # compiled as a call argument or return value
    is_arg: bool
    # compiled in the field form (with explicit size and endianness)
    is_field: bool
    optional: bool = False
    # reasons for the enclosing call to be unavailable, None outside calls
    missing: Optional[List[str]] = None

    def inner(self, dir: Dir) -> 'Context':
        return Context(
            parent='', name='', dir=dir,
            is_arg=False, is_field=True, missing=self.missing,
        )

    def label(self) -> str:
        if self.parent == '':
            return self.name
        return '{}.{}'.format(self.parent, self.name)


# decoders
INT_TYPES = ('int8', 'int16', 'int32', 'int64', 'intptr')

BYTESIZE_TYPES = ('bytesize', 'bytesize2', 'bytesize4', 'bytesize8')


def decode_int_type(typ: str) -> Tuple[int, bool]:
    big_endian = False
    if typ.endswith('be'):
        big_endian = True
        typ = typ[:-len('be')]

    if typ not in INT_TYPES:
        raise SysgenError('unknown type {}'.format(typ))

    if typ == 'intptr':
        return config.PTR_SIZE, big_endian

    return int(typ[len('int'):]) // 8, big_endian


def decode_byte_size(typ: str) -> int:
    if typ not in BYTESIZE_TYPES:
        raise SysgenError('unknown type {}'.format(typ))

    if typ == 'bytesize':
        return 1

    return int(typ[len('bytesize'):])


def parse_range(token: str, consts: Dict[str, int]) -> Tuple[int, int]:
    parts = token.split(':')
    if len(parts) not in (1, 2):
        raise SysgenError('bad range: {}'.format(token))

    vals = []  # type: List[int]
    for part in parts:
        val = lookup_const(part, consts)
        if val is None:
            raise SysgenError('bad range: {}'.format(token))
        vals.append(val)

    return vals[0], vals[-1]


# constructs
class Construct(ABC):
    """
    One member of the type vocabulary: declares how many parameters it
    takes and whether it may directly be a call argument.
    """

    can_be_arg = True

    @abstractmethod
    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        raise RuntimeError('Method not implemented')

    @abstractmethod
    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        raise RuntimeError('Method not implemented')

    # utils
    @staticmethod
    def int_header(
            ctxt: Context, params: List[str], index: int
    ) -> Tuple[int, bool]:
        # arguments are always pointer-sized and in native endianness
        if not ctxt.is_field:
            return config.PTR_SIZE, False
        return decode_int_type(params[index])


class ConstructFileoff(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return (1,) if ctxt.is_field else (0,)

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        size, big_endian = self.int_header(ctxt, params, 0)
        return IntType.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
            size=size, big_endian=big_endian, kind=IntKind.FILEOFF,
        )


class ConstructBuffer(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return 1,

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        inner = BufferType.build(
            name=ctxt.name, dir=Dir.parse(params[0]), optional=ctxt.optional,
            kind=BufferKind.BLOB_RAND,
        )
        return PtrType.build(
            name=ctxt.name, dir=Dir.IN, optional=False, inner=inner,
        )


class ConstructString(Construct):
    can_be_arg = False

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return 0, 1, 2

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        vals = []  # type: List[bytes]
        sub_kind = ''

        if len(params) >= 1:
            item = params[0]
            if item.startswith('"'):
                vals.append(item[1:-1].encode('utf-8'))
            else:
                if item not in scope.desc.str_flags:
                    raise SysgenError('unknown string flags {}'.format(item))
                vals.extend(i.encode('utf-8') for i in scope.desc.str_flags[item])
                sub_kind = item

        # strings are always null-terminated
        vals = [i + b'\x00' for i in vals]

        if len(params) >= 2:
            size = scope.consts.get(params[1], None)
            if size is None:
                try:
                    size = int(params[1], 10)
                except ValueError:
                    raise SysgenError(
                        'failed to parse string length for {}: {}'.format(
                            ctxt.label(), params[1]
                        )
                    )

            for i in vals:
                if len(i) > size:
                    raise SysgenError(
                        'string value {!r} exceeds buffer length {} '
                        'for arg {}'.format(i, size, ctxt.label())
                    )

            vals = [i.ljust(size, b'\x00') for i in vals]

        return BufferType.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
            kind=BufferKind.STRING, sub_kind=sub_kind, values=vals,
        )


class ConstructAlg(Construct):
    can_be_arg = False

    def __init__(self, kind: BufferKind) -> None:
        self.kind = kind

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return 0,

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        return BufferType.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
            kind=self.kind,
        )


class ConstructVma(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return 0, 1

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        begin, end = 0, 0
        if len(params) == 1:
            begin, end = parse_range(params[0], scope.consts)

        return VmaType.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
            range_begin=begin, range_end=end,
        )


class ConstructLen(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return (2,) if ctxt.is_field else (1,)

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        size, big_endian = self.int_header(ctxt, params, 1)
        return LenType.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
            size=size, big_endian=big_endian, buf=params[0],
            byte_size=0 if typ == 'len' else decode_byte_size(typ),
        )


class ConstructFlags(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return (2,) if ctxt.is_field else (1,)

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        size, big_endian = self.int_header(ctxt, params, 1)

        if params[0] not in scope.desc.flags:
            raise SysgenError('unknown flag {}'.format(params[0]))

        vals = []  # type: List[int]
        for item in scope.desc.flags[params[0]]:
            val = parse_int(item)
            if val is None:
                raise SysgenError('bad value {} in flag {}'.format(
                    item, params[0]
                ))
            vals.append(val)

        # nothing left on this architecture, any value will do
        if len(vals) == 0:
            return IntType.build(
                name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
                size=size, big_endian=big_endian,
            )

        return FlagsType.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
            size=size, big_endian=big_endian, values=vals,
        )


class ConstructConst(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return (2,) if ctxt.is_field else (1,)

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        size, big_endian = self.int_header(ctxt, params, 1)

        item = params[0]
        if item in scope.consts:
            val = scope.consts[item]

        elif is_identifier(item):
            # no value on this architecture
            val = 0
            if ctxt.missing is not None:
                ctxt.missing.append('missing const {}'.format(item))
            else:
                scope.unsupported.report('const', item)

        else:
            parsed = parse_int(item)
            if parsed is None:
                raise SysgenError('bad const value {} for {}'.format(
                    item, ctxt.label()
                ))
            val = parsed

        return ConstType.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
            size=size, big_endian=big_endian, value=val,
        )


class ConstructProc(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return (3,) if ctxt.is_field else (2,)

    @staticmethod
    def _parse(token: str) -> int:
        try:
            return int(token, 10)
        except ValueError:
            raise SysgenError('couldn\'t parse \'{}\' as int64'.format(token))

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        size, big_endian = self.int_header(ctxt, params, 0)
        if ctxt.is_field:
            params = params[1:]

        start = self._parse(params[0])
        per_proc = self._parse(params[1])

        if per_proc < 1:
            raise SysgenError(
                'values per proc \'{}\' should be >= 1'.format(per_proc)
            )

        limit = 1 << (size * 8)
        if start >= limit:
            raise SysgenError(
                'values starting from \'{}\' overflow desired type '
                'of size \'{}\''.format(start, size)
            )

        if start + config.MAX_PIDS * per_proc >= limit:
            raise SysgenError(
                'not enough values starting from \'{}\' with step \'{}\' '
                'and type size \'{}\' for {} procs'.format(
                    start, per_proc, size, config.MAX_PIDS
                )
            )

        return ProcType.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
            size=size, big_endian=big_endian,
            values_start=start, values_per_proc=per_proc,
        )


class ConstructInt(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return 0, 1

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        size, big_endian = decode_int_type(typ)

        if len(params) == 0:
            return IntType.build(
                name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
                size=size, big_endian=big_endian,
            )

        begin, end = parse_range(params[0], scope.consts)
        return IntType.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
            size=size, big_endian=big_endian, kind=IntKind.RANGE,
            range_begin=begin, range_end=end,
        )


class ConstructSignalno(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return 0,

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        return IntType.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
            size=4, kind=IntKind.SIGNALNO,
        )


class ConstructFilename(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return 0,

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        inner = BufferType.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
            kind=BufferKind.FILENAME,
        )
        return PtrType.build(
            name=ctxt.name, dir=Dir.IN, optional=False, inner=inner,
        )


class ConstructArray(Construct):
    can_be_arg = False

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return 1, 2

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        elem = params[0]

        begin, end = 0, 0
        if len(params) == 2:
            begin, end = parse_range(params[1], scope.consts)

        # byte arrays are opaque blobs
        if elem == 'int8':
            return BufferType.build(
                name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
                kind=BufferKind.BLOB_RAND if len(params) == 1
                else BufferKind.BLOB_RANGE,
                range_begin=begin, range_end=end,
            )

        inner = compile_type(scope, ctxt.inner(ctxt.dir), elem, [])
        return ArrayType.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional,
            inner=inner,
            kind=ArrayKind.RAND_LEN if len(params) == 1
            else ArrayKind.RANGE_LEN,
            range_begin=begin, range_end=end,
        )


class ConstructPtr(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return 2,

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        inner = compile_type(
            scope, ctxt.inner(Dir.parse(params[0])), params[1], []
        )
        return PtrType.build(
            name=ctxt.name, dir=Dir.IN, optional=ctxt.optional, inner=inner,
        )


class ConstructUnnamed(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return 0,

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        if typ not in scope.desc.unnamed:
            raise SysgenError('unknown unnamed type \'{}\''.format(typ))

        spec = scope.desc.unnamed[typ]
        if len(spec) == 0:
            raise SysgenError('empty unnamed type \'{}\''.format(typ))

        # the expansion decides whether it can be an argument
        return compile_type(
            scope,
            Context(
                parent='', name='', dir=ctxt.dir,
                is_arg=ctxt.is_arg, is_field=ctxt.is_field,
                optional=ctxt.optional, missing=ctxt.missing,
            ),
            spec[0], spec[1:]
        )


class ConstructStruct(Construct):
    can_be_arg = False

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return 0,

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        key = StructKey(typ, ctxt.name, ctxt.dir)

        # top-level usage is rejected by the caller instead
        if not ctxt.is_arg and key not in scope.arena:
            raise SysgenError('struct instance {} is not registered'.format(
                key
            ))

        kind = UnionRef if scope.desc.structs[typ].is_union else StructRef
        return kind.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional, key=key,
        )


class ConstructResource(Construct):

    def arity(self, ctxt: Context) -> Tuple[int, ...]:
        return 0,

    def build(
            self, scope: Scope, ctxt: Context, typ: str, params: List[str]
    ) -> Type:
        return ResourceRef.build(
            name=ctxt.name, dir=ctxt.dir, optional=ctxt.optional, desc=typ,
        )


CONSTRUCTS = {
    'fileoff': ConstructFileoff(),
    'buffer': ConstructBuffer(),
    'string': ConstructString(),
    'salg_type': ConstructAlg(BufferKind.ALG_TYPE),
    'salg_name': ConstructAlg(BufferKind.ALG_NAME),
    'vma': ConstructVma(),
    'len': ConstructLen(),
    'flags': ConstructFlags(),
    'const': ConstructConst(),
    'proc': ConstructProc(),
    'signalno': ConstructSignalno(),
    'filename': ConstructFilename(),
    'array': ConstructArray(),
    'ptr': ConstructPtr(),
}  # type: Dict[str, Construct]

for _typ in BYTESIZE_TYPES:
    CONSTRUCTS[_typ] = CONSTRUCTS['len']

for _typ in INT_TYPES + ('int16be', 'int32be', 'int64be', 'intptrbe'):
    CONSTRUCTS[_typ] = ConstructInt()

UNNAMED_PREFIX = 'unnamed'

CONSTRUCT_UNNAMED = ConstructUnnamed()
CONSTRUCT_STRUCT = ConstructStruct()
CONSTRUCT_RESOURCE = ConstructResource()


def find_construct(scope: Scope, ctxt: Context, typ: str) -> Construct:
    if typ in CONSTRUCTS:
        return CONSTRUCTS[typ]

    if typ.startswith(UNNAMED_PREFIX):
        return CONSTRUCT_UNNAMED

    if typ in scope.desc.structs:
        return CONSTRUCT_STRUCT

    if typ in scope.desc.resources:
        return CONSTRUCT_RESOURCE

    raise SysgenError('unknown arg type "{}" for {}'.format(
        typ, ctxt.label()
    ))


def _fmt_arity(want: Tuple[int, ...]) -> str:
    if len(want) == 1:
        return str(want[0])
    if len(want) == 2:
        return '{} or {}'.format(want[0], want[1])
    return '{}-{}'.format(want[0], want[-1])


def compile_type(
        scope: Scope, ctxt: Context, typ: str, params: List[str]
) -> Type:
    # the opt marker can appear anywhere in the params
    params = list(params)
    if 'opt' in params:
        params.remove('opt')
        ctxt = ctxt._replace(optional=True)

    construct = find_construct(scope, ctxt, typ)

    want = construct.arity(ctxt)
    if len(params) not in want:
        raise SysgenError(
            'wrong number of arguments for {} arg {}, want {}, got {}'.format(
                typ, ctxt.label(), _fmt_arity(want), len(params)
            )
        )

    logging.debug('[{}] compile {} as {}'.format(
        scope.arch, ctxt.label(), typ
    ))
    node = construct.build(scope, ctxt, typ, params)

    if ctxt.is_arg and not construct.can_be_arg:
        raise SysgenError('{} {} can\'t be syscall argument/return'.format(
            ctxt.label(), typ
        ))

    return node
