from typing import Any, List, Dict, Tuple, Optional

import json
import logging

import config
from sysgen_basis import StructKey, StructType, ResourceDesc, CallDesc
from sysgen_call import assemble_calls
from sysgen_const import load_consts
from sysgen_flag import Unsupported, resolve_flags
from sysgen_resource import resolve_resources
from sysgen_schema import Description
from sysgen_struct import instance_structs
from sysgen_type import Scope
from util import parallelize
from util_bean import Bean


class Target(Bean):
    """
    The compiled universe of one architecture, sealed once formulated.
    """

    arch: str
    consts: Dict[str, int]
    resources: Dict[str, ResourceDesc]
    structs: Dict[StructKey, StructType]
    calls: List[CallDesc]

    # bean
    def validate(self) -> None:
        for res in self.resources.values():
            assert res.ready()

        for key, inst in self.structs.items():
            assert inst.key == key and inst.ready()

        for call in self.calls:
            assert call.ready()

    @classmethod
    def formulate(
            cls, arch: str, desc: Description, consts: Dict[str, int]
    ) -> 'Target':
        logging.info('[{}] generating...'.format(arch))
        unsupported = Unsupported(arch)

        # flags are re-projected on every architecture
        flags = resolve_flags(desc.flags, consts, unsupported)
        scope = Scope(arch, desc.with_flags(flags), consts, unsupported)

        # the order matters, each stage consumes the results of the previous
        resources = resolve_resources(scope)
        logging.info('[{}] {} resources resolved'.format(arch, len(resources)))

        structs = instance_structs(scope)
        logging.info('[{}] {} struct instances'.format(arch, len(structs)))

        calls = assemble_calls(scope)
        logging.info('[{}] {} calls, {} available'.format(
            arch, len(calls), len([i for i in calls if i.available()])
        ))

        target = Target.build(
            arch=arch,
            consts=consts,
            resources=resources,
            structs=structs,
            calls=calls,
        )
        target.check()
        return target

    # query
    def call_nr(self, name: str) -> int:
        for call in self.calls:
            if call.name == name:
                return call.nr
        raise KeyError(name)

    # export
    def export(self) -> Dict[str, Any]:
        return {
            'arch': self.arch,
            'resources': {
                k: v.export() for k, v in self.resources.items()
            },
            'structs': [
                self.structs[k].export()
                for k in sorted(self.structs.keys(), key=str)
            ],
            'calls': [i.export() for i in self.calls],
            # deterministic output, ascending names
            'consts': [[k, self.consts[k]] for k in sorted(self.consts)],
        }

    def json(self) -> str:
        return json.dumps(self.export(), indent=2)


def _formulate_worker(item: Tuple[str, Description, str]) -> Target:
    arch, desc, path = item
    return Target.formulate(arch, desc, load_consts(arch, path))


def formulate_targets(
        desc: Description,
        path: str,
        archs: Optional[List[str]] = None,
        ncpu: int = 1,
) -> List[Target]:
    if archs is None:
        archs = config.ARCH_NAMES

    items = [(arch, desc, path) for arch in archs]

    # architectures share nothing, so they can be compiled in parallel
    if ncpu <= 1 or len(items) <= 1:
        return [_formulate_worker(i) for i in items]

    return parallelize(_formulate_worker, items, ncpu)
