from typing import Dict

import logging

from sysgen_basis import Dir, StructKey, StructType, UnionType
from sysgen_schema import StructDef
from sysgen_type import Scope, Context, compile_type


def _register(scope: Scope, key: StructKey, defn: StructDef) -> None:
    if key in scope.arena:
        return

    kind = UnionType if defn.is_union else StructType
    scope.arena[key] = kind.build(
        name=key.field if key.field != '' else key.name,
        dir=key.dir,
        key=key,
        packed=defn.packed,
        varlen=defn.varlen,
        align=defn.align,
    )


def register_structs(scope: Scope) -> None:
    """
    Pass 1: create an instance for every context a struct can be used in,
    i.e., top-level and embedded as a field, in each direction.
    """

    structs = scope.desc.structs

    for defn in structs.values():
        for d in Dir:
            _register(scope, StructKey(defn.name, '', d), defn)

        for field in defn.fields:
            if field[1] not in structs:
                continue

            for d in Dir:
                _register(scope, StructKey(field[1], field[0], d),
                          structs[field[1]])


def populate_structs(scope: Scope) -> None:
    """
    Pass 2: compile the fields (or options) of every registered instance.
    """

    for key, inst in scope.arena.items():
        defn = scope.desc.structs[key.name]
        logging.debug('[{}] populate struct {}'.format(scope.arch, key))

        for field in defn.fields:
            ctxt = Context(
                parent=defn.name, name=field[0], dir=key.dir,
                is_arg=False, is_field=True,
            )
            inst.fields.append(compile_type(scope, ctxt, field[1], field[2:]))

    for inst in scope.arena.values():
        inst.check()


def instance_structs(scope: Scope) -> Dict[StructKey, StructType]:
    register_structs(scope)
    populate_structs(scope)
    return scope.arena
