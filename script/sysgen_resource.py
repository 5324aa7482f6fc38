from typing import cast, List, Dict, Set

import logging

from sortedcontainers import SortedDict  # type: ignore

from sysgen_basis import SysgenError, Dir, IntType, ResourceDesc
from sysgen_const import is_identifier, parse_int
from sysgen_type import Scope, Context, INT_TYPES, compile_type


def _resolve_values(scope: Scope, name: str, vals: List[str]) -> List[int]:
    result = []  # type: List[int]

    for val in vals:
        if val in scope.consts:
            result.append(scope.consts[val])
            continue

        if is_identifier(val):
            scope.unsupported.report('resource value', val)
            continue

        parsed = parse_int(val)
        if parsed is None:
            raise SysgenError('bad value {} for resource {}'.format(val, name))
        result.append(parsed)

    return result


def resolve_resource(scope: Scope, name: str) -> ResourceDesc:
    """
    Walk up the inheritance chain of a resource until reaching a primitive
    integer kind, values of ancestors come before values of descendants.
    """

    resources = scope.desc.resources

    res = resources[name]
    kind = [name]
    values = []  # type: List[int]
    hist = {name}  # type: Set[str]

    while True:
        values = _resolve_values(scope, name, res.values) + values

        if res.base in INT_TYPES:
            underlying = res.base
            break

        if res.base not in resources:
            raise SysgenError(
                'resource \'{}\' has unknown parent resource \'{}\''.format(
                    name, res.base
                )
            )

        if res.base in hist:
            raise SysgenError(
                'resource \'{}\' has a cycle in its parents through '
                '\'{}\''.format(name, res.base)
            )

        hist.add(res.base)
        kind.insert(0, res.base)
        res = resources[res.base]

    # resources without interesting values still need one
    if len(values) == 0:
        values.append(0)

    ctxt = Context(
        parent='', name='resource-type', dir=Dir.INOUT,
        is_arg=True, is_field=True,
    )

    desc = ResourceDesc.build(
        name=name,
        kind=kind,
        type=cast(IntType, compile_type(scope, ctxt, underlying, [])),
        values=values,
    )
    desc.check()
    return desc


def resolve_resources(scope: Scope) -> Dict[str, ResourceDesc]:
    result = SortedDict()  # type: Dict[str, ResourceDesc]

    for name in sorted(scope.desc.resources.keys()):
        logging.debug('[{}] resolve resource {}'.format(scope.arch, name))
        result[name] = resolve_resource(scope, name)

    return result
