from typing import List, Optional

import pytest

from sysgen_basis import SysgenError, Dir, IntKind, BufferKind, ArrayKind, \
    StructKey, IntType, LenType, FlagsType, ConstType, ProcType, \
    BufferType, VmaType, PtrType, ArrayType, StructRef, UnionRef, ResourceRef
from sysgen_struct import register_structs
from sysgen_type import Scope, Context, compile_type


def arg(scope: Scope, typ: str, *params: str,
        name: str = 'a', d: Dir = Dir.IN,
        missing: Optional[List[str]] = None):
    ctxt = Context(
        parent='call', name=name, dir=d,
        is_arg=True, is_field=False, missing=missing,
    )
    return compile_type(scope, ctxt, typ, list(params))


def field(scope: Scope, typ: str, *params: str,
          name: str = 'f', d: Dir = Dir.IN):
    ctxt = Context(
        parent='s', name=name, dir=d,
        is_arg=False, is_field=True,
    )
    return compile_type(scope, ctxt, typ, list(params))


# integers
def test_int_arg(scope_of) -> None:
    node = arg(scope_of(), 'int32')
    assert isinstance(node, IntType)
    assert node.size == 4 and not node.big_endian
    assert node.kind == IntKind.PLAIN
    assert node.name == 'a' and node.dir == Dir.IN and not node.optional


def test_int_big_endian(scope_of) -> None:
    node = field(scope_of(), 'int16be')
    assert node.size == 2 and node.big_endian

    assert field(scope_of(), 'intptr').size == 8


def test_int_range(scope_of) -> None:
    scope = scope_of(consts={'MAX': 64})

    node = arg(scope, 'intptr', '0:10')
    assert node.kind == IntKind.RANGE
    assert (node.range_begin, node.range_end) == (0, 10)

    node = arg(scope, 'int32', '1:MAX')
    assert (node.range_begin, node.range_end) == (1, 64)

    node = arg(scope, 'int8', '5')
    assert (node.range_begin, node.range_end) == (5, 5)


@pytest.mark.parametrize('token', ['1:2:3', 'UNKNOWN', '1:x'])
def test_int_bad_range(scope_of, token: str) -> None:
    with pytest.raises(SysgenError, match='bad range'):
        arg(scope_of(), 'int32', token)


def test_signalno(scope_of) -> None:
    node = arg(scope_of(), 'signalno')
    assert node.kind == IntKind.SIGNALNO and node.size == 4


def test_fileoff(scope_of) -> None:
    node = arg(scope_of(), 'fileoff')
    assert node.kind == IntKind.FILEOFF and node.size == 8

    node = field(scope_of(), 'fileoff', 'int32')
    assert node.size == 4


def test_unknown_int_type(scope_of) -> None:
    with pytest.raises(SysgenError, match='unknown type int24'):
        field(scope_of(), 'fileoff', 'int24')


# arity
def test_arity_errors(scope_of) -> None:
    scope = scope_of()

    with pytest.raises(SysgenError) as ex:
        field(scope, 'fileoff')
    assert str(ex.value) == \
        'wrong number of arguments for fileoff arg s.f, want 1, got 0'

    with pytest.raises(SysgenError, match='want 0 or 1, got 2'):
        arg(scope, 'int32', '0:1', '2:3')

    with pytest.raises(SysgenError, match='want 0-2, got 3'):
        field(scope, 'string', '"a"', '4', '5')

    with pytest.raises(SysgenError, match='want 2, got 1'):
        arg(scope, 'ptr', 'in')


def test_opt_marker(scope_of) -> None:
    node = arg(scope_of(), 'int32', 'opt')
    assert node.optional

    node = arg(scope_of(), 'int32', 'opt', '0:1')
    assert node.optional and node.kind == IntKind.RANGE


def test_unknown_type(scope_of) -> None:
    with pytest.raises(SysgenError, match='unknown arg type "foo" for call.a'):
        arg(scope_of(), 'foo')


# len
def test_len(scope_of) -> None:
    node = arg(scope_of(), 'len', 'buf')
    assert isinstance(node, LenType)
    assert node.buf == 'buf' and node.byte_size == 0 and node.size == 8

    node = field(scope_of(), 'bytesize4', 'buf', 'int16')
    assert node.byte_size == 4 and node.size == 2

    node = field(scope_of(), 'bytesize', 'buf', 'int8')
    assert node.byte_size == 1 and node.size == 1


# flags
def test_flags(scope_of) -> None:
    scope = scope_of({'flags': {'f': ['1', '0x2'], 'none': []}})

    node = arg(scope, 'flags', 'f')
    assert isinstance(node, FlagsType)
    assert node.values == [1, 2] and node.size == 8

    node = field(scope, 'flags', 'f', 'int16')
    assert node.size == 2

    # nothing survived the projection
    node = arg(scope, 'flags', 'none')
    assert type(node) is IntType and node.kind == IntKind.PLAIN


def test_flags_unknown(scope_of) -> None:
    with pytest.raises(SysgenError, match='unknown flag f'):
        arg(scope_of(), 'flags', 'f')


# const
def test_const(scope_of) -> None:
    scope = scope_of(consts={'X': 5})

    node = arg(scope, 'const', 'X')
    assert isinstance(node, ConstType) and node.value == 5

    assert arg(scope, 'const', '0x10').value == 16

    node = field(scope, 'const', 'X', 'int32be')
    assert node.value == 5 and node.size == 4 and node.big_endian


def test_const_missing(scope_of) -> None:
    missing = []  # type: List[str]
    node = arg(scope_of(), 'const', 'Y', missing=missing)
    assert node.value == 0
    assert missing == ['missing const Y']


def test_const_bad_value(scope_of) -> None:
    with pytest.raises(SysgenError, match='bad const value'):
        arg(scope_of(), 'const', '1x')


# proc
def test_proc(scope_of) -> None:
    node = arg(scope_of(), 'proc', '100', '4')
    assert isinstance(node, ProcType)
    assert node.values_start == 100 and node.values_per_proc == 4
    assert node.size == 8

    node = field(scope_of(), 'proc', 'int8', '0', '7')
    assert node.size == 1 and node.values_per_proc == 7


@pytest.mark.parametrize('params, msg', [
    (['int8', '0', '8'], 'not enough values'),
    (['int8', '256', '1'], 'overflow desired type'),
    (['int8', '0', '0'], 'should be >= 1'),
    (['int8', 'x', '1'], 'couldn\'t parse'),
])
def test_proc_errors(scope_of, params: List[str], msg: str) -> None:
    with pytest.raises(SysgenError, match=msg):
        field(scope_of(), 'proc', *params)


# strings
def test_string_literal(scope_of) -> None:
    node = field(scope_of(), 'string', '"abc"')
    assert isinstance(node, BufferType)
    assert node.kind == BufferKind.STRING
    assert node.values == [b'abc\x00']


def test_string_padded(scope_of) -> None:
    node = field(scope_of(), 'string', '"abc"', '8')
    assert node.values == [b'abc\x00\x00\x00\x00\x00']

    node = field(scope_of(), 'string', '"abc"', '4')
    assert node.values == [b'abc\x00']

    node = field(scope_of(consts={'LEN': 6}), 'string', '"ab"', 'LEN')
    assert node.values == [b'ab\x00\x00\x00\x00']


def test_string_too_long(scope_of) -> None:
    with pytest.raises(SysgenError, match='exceeds buffer length 3'):
        field(scope_of(), 'string', '"abc"', '3')


def test_string_flags(scope_of) -> None:
    scope = scope_of({'str_flags': {'fs': ['ext4', 'xfs']}})

    node = field(scope, 'string', 'fs')
    assert node.sub_kind == 'fs'
    assert node.values == [b'ext4\x00', b'xfs\x00']

    with pytest.raises(SysgenError, match='unknown string flags'):
        field(scope, 'string', 'nofs')


def test_string_not_arg(scope_of) -> None:
    with pytest.raises(SysgenError, match='can\'t be syscall argument'):
        arg(scope_of(), 'string')


def test_alg(scope_of) -> None:
    assert field(scope_of(), 'salg_name').kind == BufferKind.ALG_NAME
    assert field(scope_of(), 'salg_type').kind == BufferKind.ALG_TYPE

    with pytest.raises(SysgenError, match='can\'t be syscall argument'):
        arg(scope_of(), 'salg_type')


# vma
def test_vma(scope_of) -> None:
    node = arg(scope_of(), 'vma')
    assert isinstance(node, VmaType)
    assert (node.range_begin, node.range_end) == (0, 0)

    node = arg(scope_of(consts={'N': 4}), 'vma', '1:N')
    assert (node.range_begin, node.range_end) == (1, 4)


# pointers
def test_ptr(scope_of) -> None:
    node = arg(scope_of(), 'ptr', 'out', 'int32')
    assert isinstance(node, PtrType)
    assert node.dir == Dir.IN and not node.optional
    assert isinstance(node.inner, IntType)
    assert node.inner.dir == Dir.OUT and node.inner.size == 4

    node = arg(scope_of(), 'ptr', 'in', 'int8', 'opt')
    assert node.optional and not node.inner.optional


def test_ptr_bad_dir(scope_of) -> None:
    with pytest.raises(SysgenError, match='bad direction sideways'):
        arg(scope_of(), 'ptr', 'sideways', 'int32')


def test_buffer(scope_of) -> None:
    node = arg(scope_of(), 'buffer', 'out')
    assert isinstance(node, PtrType)
    assert node.dir == Dir.IN and not node.optional
    assert isinstance(node.inner, BufferType)
    assert node.inner.kind == BufferKind.BLOB_RAND
    assert node.inner.dir == Dir.OUT and not node.inner.optional

    node = arg(scope_of(), 'buffer', 'inout', 'opt')
    assert not node.optional
    assert node.inner.dir == Dir.INOUT and node.inner.optional


def test_filename(scope_of) -> None:
    node = arg(scope_of(), 'filename', 'opt')
    assert isinstance(node, PtrType)
    assert node.dir == Dir.IN and not node.optional
    assert node.inner.kind == BufferKind.FILENAME
    assert node.inner.optional


# arrays
def test_array_bytes(scope_of) -> None:
    node = field(scope_of(), 'array', 'int8')
    assert isinstance(node, BufferType)
    assert node.kind == BufferKind.BLOB_RAND

    node = field(scope_of(), 'array', 'int8', '1:4')
    assert node.kind == BufferKind.BLOB_RANGE
    assert (node.range_begin, node.range_end) == (1, 4)


def test_array(scope_of) -> None:
    node = field(scope_of(), 'array', 'int32', '2:8', d=Dir.OUT)
    assert isinstance(node, ArrayType)
    assert node.kind == ArrayKind.RANGE_LEN
    assert (node.range_begin, node.range_end) == (2, 8)
    assert isinstance(node.inner, IntType)
    assert node.inner.size == 4 and node.inner.dir == Dir.OUT

    node = field(scope_of(), 'array', 'int16')
    assert node.kind == ArrayKind.RAND_LEN


def test_array_not_arg(scope_of) -> None:
    with pytest.raises(SysgenError, match='call.a array can\'t be syscall'):
        arg(scope_of(), 'array', 'int32')


# unnamed
def test_unnamed_behind_ptr(scope_of) -> None:
    scope = scope_of({'unnamed': {'unnamed0': ['array', 'int32']}})

    node = arg(scope, 'ptr', 'in', 'unnamed0')
    assert isinstance(node, PtrType)
    assert isinstance(node.inner, ArrayType)


def test_unnamed_eligibility(scope_of) -> None:
    scope = scope_of({'unnamed': {
        'unnamed0': ['array', 'int32'],
        'unnamed1': ['int32', '0:3'],
    }})

    with pytest.raises(SysgenError, match='can\'t be syscall argument'):
        arg(scope, 'unnamed0')

    node = arg(scope, 'unnamed1', 'opt')
    assert node.kind == IntKind.RANGE and node.optional


def test_unnamed_unknown(scope_of) -> None:
    with pytest.raises(SysgenError, match='unknown unnamed type'):
        arg(scope_of(), 'unnamed9')

    with pytest.raises(SysgenError, match='want 0, got 1'):
        arg(scope_of({'unnamed': {'unnamed0': ['int8']}}), 'unnamed0', 'x')


# structs and resources
STRUCTS = {
    'structs': {
        'pair': {'fields': [['a', 'int32'], ['b', 'int32']]},
        'choice': {'fields': [['a', 'int8']], 'is_union': True},
    },
}


def test_struct_ref(scope_of) -> None:
    scope = scope_of(STRUCTS)
    register_structs(scope)

    node = arg(scope, 'ptr', 'out', 'pair')
    assert isinstance(node.inner, StructRef)
    assert node.inner.key == StructKey('pair', '', Dir.OUT)
    assert node.inner.key in scope.arena

    node = arg(scope, 'ptr', 'in', 'choice')
    assert isinstance(node.inner, UnionRef)


def test_struct_not_arg(scope_of) -> None:
    scope = scope_of(STRUCTS)
    register_structs(scope)

    with pytest.raises(SysgenError, match='call.a pair can\'t be syscall'):
        arg(scope, 'pair')


def test_struct_not_registered(scope_of) -> None:
    scope = scope_of(STRUCTS)

    with pytest.raises(SysgenError, match='is not registered'):
        field(scope, 'pair')


def test_struct_arity(scope_of) -> None:
    scope = scope_of(STRUCTS)
    register_structs(scope)

    with pytest.raises(SysgenError, match='want 0, got 1'):
        field(scope, 'pair', 'x')


def test_resource_ref(scope_of) -> None:
    scope = scope_of({'resources': {'fd': {'base': 'int32'}}})

    node = arg(scope, 'fd', d=Dir.OUT)
    assert isinstance(node, ResourceRef)
    assert node.desc == 'fd' and node.dir == Dir.OUT

    with pytest.raises(SysgenError, match='want 0, got 1'):
        arg(scope, 'fd', '1')
