from typing import List, Dict

import os

from abc import ABC, abstractmethod

import config
from sysgen_basis import SysgenError
from sysgen_target import Target
from util import prepfn


class Generator(ABC):

    def __init__(self, name: str, path: str) -> None:
        # basic
        self.name = name

        # derived
        self.path = path
        self.mark = '_SYSGEN_{}_H_'.format(self.name.upper())

    def gen_warning(self) -> List[str]:
        return [
            '/* AUTO-GENERATED ({}) - DO NOT EDIT */'.format(self.name)
        ]

    def gen_mark_header(self) -> List[str]:
        return [
            '#ifndef {}'.format(self.mark),
            '#define {}'.format(self.mark),
        ]

    def gen_mark_footer(self) -> List[str]:
        return [
            '#endif /* {} */'.format(self.mark),
        ]

    @abstractmethod
    def generate(self) -> str:
        raise RuntimeError('Method not implemented')

    def save(self) -> None:
        prepfn(self.path)
        with open(self.path, 'w') as f:
            f.write(self.generate())


class Generator_SYSCALLS(Generator):
    """
    The call table of the executor: for every architecture, the name and
    number of each call (-1 if not available).
    """

    def __init__(self, outdir: str, targets: List[Target]) -> None:
        super(Generator_SYSCALLS, self).__init__(
            'syscalls', os.path.join(outdir, config.OUTPUT_EXECUTOR_HEADER)
        )
        self.targets = targets

    def gen_pseudo(self) -> List[str]:
        calls = {}  # type: Dict[str, int]
        for target in self.targets:
            for call in target.calls:
                if not call.call_name.startswith(config.PSEUDO_CALL_PREFIX):
                    continue
                if call.call_name in config.PSEUDO_CALLS:
                    calls[call.call_name] = \
                        config.PSEUDO_CALLS[call.call_name]

        return [
            '#define {}{} {}'.format(config.NR_PREFIX, name, calls[name])
            for name in sorted(calls)
        ]

    def gen_struct(self) -> List[str]:
        return [
            'struct call_t {',
            '    const char *name;',
            '    int sys_nr;',
            '};',
        ]

    def gen_table(self, target: Target) -> List[str]:
        cdefs = None
        for arch in config.ARCHS:
            if arch.name == target.arch:
                cdefs = arch.cdefs
                break

        if cdefs is None:
            raise SysgenError('unknown architecture {}'.format(target.arch))

        exprs = [
            '#if {}'.format(
                ' || '.join(['defined({})'.format(i) for i in cdefs])
            ),
            'static struct call_t syscalls[] = {',
        ]
        for call in target.calls:
            exprs.append('    {{"{}", {}}},'.format(call.name, call.nr))
        exprs.append('};')
        exprs.append('#endif')
        return exprs

    def generate(self) -> str:
        exprs = self.gen_warning()
        exprs += self.gen_mark_header()
        exprs += self.gen_pseudo()
        exprs += self.gen_struct()
        for target in self.targets:
            exprs += self.gen_table(target)
        exprs += self.gen_mark_footer()
        return '\n'.join(exprs) + '\n'


class Generator_TARGET(Generator):
    """
    The compiled universe of one architecture, as a json document.
    """

    def __init__(self, outdir: str, target: Target) -> None:
        super(Generator_TARGET, self).__init__(
            'sys_{}'.format(target.arch),
            os.path.join(outdir, config.OUTPUT_TARGET_NAME(target.arch))
        )
        self.target = target

    def generate(self) -> str:
        return self.target.json() + '\n'
