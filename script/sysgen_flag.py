from typing import List, Dict, Set, Tuple

import logging

from sysgen_const import is_identifier


class Unsupported(object):
    """
    Collects symbols that have no value on the architecture, each of them
    is reported only once per kind of use.
    """

    def __init__(self, arch: str) -> None:
        self.arch = arch
        self.seen = set()  # type: Set[Tuple[str, str]]

    def report(self, what: str, name: str) -> None:
        if (what, name) in self.seen:
            return

        self.seen.add((what, name))
        logging.warning('[{}] unsupported {}: {}'.format(self.arch, what, name))


def resolve_flag(
        vals: List[str], consts: Dict[str, int], unsupported: Unsupported
) -> List[str]:
    result = []  # type: List[str]

    for val in vals:
        if not is_identifier(val):
            result.append(val)
            continue

        if val in consts:
            result.append(str(consts[val]))
        else:
            unsupported.report('flag', val)

    return result


def resolve_flags(
        flags: Dict[str, List[str]],
        consts: Dict[str, int],
        unsupported: Unsupported,
) -> Dict[str, List[str]]:
    return {
        name: resolve_flag(vals, consts, unsupported)
        for name, vals in flags.items()
    }
