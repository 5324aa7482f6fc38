from typing import cast, Any, NamedTuple, List, Dict

import json

from dataclasses import dataclass, field

from sysgen_basis import SysgenError


class Syscall(NamedTuple):
    name: str
    call_name: str
    # each arg is [name, type, *params]
    args: List[List[str]]
    # [type, *params], empty if the call returns nothing of interest
    ret: List[str]


class StructDef(NamedTuple):
    name: str
    # each field is [name, type, *params]
    fields: List[List[str]]
    is_union: bool = False
    packed: bool = False
    varlen: bool = False
    align: int = 0


class ResourceDef(NamedTuple):
    name: str
    base: str
    values: List[str]


@dataclass
class Description(object):
    """
    The architecture-independent description, as produced by the parser.
    """

    syscalls: List[Syscall] = field(default_factory=list)
    structs: Dict[str, StructDef] = field(default_factory=dict)
    resources: Dict[str, ResourceDef] = field(default_factory=dict)
    flags: Dict[str, List[str]] = field(default_factory=dict)
    str_flags: Dict[str, List[str]] = field(default_factory=dict)
    unnamed: Dict[str, List[str]] = field(default_factory=dict)

    @staticmethod
    def _tokens(item: Any, what: str) -> List[str]:
        if not isinstance(item, list) or \
                not all(isinstance(i, str) for i in item):
            raise SysgenError('{} should be a list of strings'.format(what))
        return cast(List[str], item)

    @staticmethod
    def _field(item: Any, what: str) -> List[str]:
        toks = Description._tokens(item, what)
        if len(toks) < 2:
            raise SysgenError('{} should have a name and a type'.format(what))
        return toks

    @classmethod
    def parse(cls, data: Dict[str, Any]) -> 'Description':
        desc = Description()

        for item in data.get('syscalls', []):
            name = item['name']
            desc.syscalls.append(Syscall(
                name=name,
                call_name=item.get('call_name', name),
                args=[
                    cls._field(i, 'arg of {}'.format(name))
                    for i in item.get('args', [])
                ],
                ret=cls._tokens(item.get('ret', []), 'ret of {}'.format(name)),
            ))

        for name, item in data.get('structs', {}).items():
            desc.structs[name] = StructDef(
                name=name,
                fields=[
                    cls._field(i, 'field of {}'.format(name))
                    for i in item.get('fields', [])
                ],
                is_union=item.get('is_union', False),
                packed=item.get('packed', False),
                varlen=item.get('varlen', False),
                align=item.get('align', 0),
            )

        for name, item in data.get('resources', {}).items():
            desc.resources[name] = ResourceDef(
                name=name,
                base=item['base'],
                values=cls._tokens(
                    item.get('values', []), 'values of {}'.format(name)
                ),
            )

        for name, item in data.get('flags', {}).items():
            desc.flags[name] = cls._tokens(item, 'flags {}'.format(name))

        for name, item in data.get('str_flags', {}).items():
            desc.str_flags[name] = cls._tokens(item, 'str_flags {}'.format(name))

        for name, item in data.get('unnamed', {}).items():
            desc.unnamed[name] = cls._tokens(item, 'unnamed {}'.format(name))

        return desc

    @classmethod
    def loads(cls, text: str) -> 'Description':
        return cls.parse(json.loads(text))

    @classmethod
    def load(cls, path: str) -> 'Description':
        with open(path, 'r') as f:
            return cls.parse(json.load(f))

    # per-architecture projection
    def with_flags(self, flags: Dict[str, List[str]]) -> 'Description':
        return Description(
            syscalls=self.syscalls,
            structs=self.structs,
            resources=self.resources,
            flags=flags,
            str_flags=self.str_flags,
            unnamed=self.unnamed,
        )
