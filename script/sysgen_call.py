from typing import List, Optional

import logging

import config
from sysgen_basis import Dir, Type, CallDesc
from sysgen_flag import Unsupported
from sysgen_schema import Syscall
from sysgen_type import Scope, Context, compile_type


def assemble_call(
        scope: Scope, call: Syscall, unsupported: Unsupported
) -> CallDesc:
    logging.debug('[{}] assemble call {}'.format(scope.arch, call.name))

    # why the call cannot be invoked on this architecture
    reasons = []  # type: List[str]

    nr = config.NR_UNAVAILABLE
    sym = config.NR_PREFIX + call.call_name
    if sym in scope.consts:
        nr = scope.consts[sym]
    else:
        reasons.append('missing call number {}'.format(sym))
        unsupported.report('syscall', call.call_name)

    # collects unresolved consts in the argument and return trees
    missing = []  # type: List[str]

    ret = None  # type: Optional[Type]
    if len(call.ret) != 0:
        ret = compile_type(
            scope,
            Context(
                parent=call.name, name='ret', dir=Dir.OUT,
                is_arg=True, is_field=False, missing=missing,
            ),
            call.ret[0], call.ret[1:]
        )

    args = []  # type: List[Type]
    for arg in call.args:
        args.append(compile_type(
            scope,
            Context(
                parent=call.name, name=arg[0], dir=Dir.IN,
                is_arg=True, is_field=False, missing=missing,
            ),
            arg[1], arg[2:]
        ))

    if len(missing) != 0:
        logging.warning('[{}] unsupported syscall: {} due to {}'.format(
            scope.arch, call.name, ', '.join(missing)
        ))
        reasons.extend(missing)

    if len(reasons) != 0:
        nr = config.NR_UNAVAILABLE

    desc = CallDesc.build(
        name=call.name,
        call_name=call.call_name,
        nr=nr,
        ret=ret,
        args=args,
        reason=', '.join(reasons),
    )
    desc.check()
    return desc


def assemble_calls(scope: Scope) -> List[CallDesc]:
    # calls are reported separately from flags and consts
    unsupported = Unsupported(scope.arch)
    return [assemble_call(scope, call, unsupported)
            for call in scope.desc.syscalls]
