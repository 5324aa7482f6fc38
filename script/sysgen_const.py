from typing import Iterable, List, Dict, Tuple, Optional

import os
import re
import logging

from sortedcontainers import SortedDict  # type: ignore

import config
from sysgen_basis import SysgenError


# tokens
def is_identifier(token: str) -> bool:
    if len(token) == 0:
        return False

    for i, c in enumerate(token):
        if c == '_' or c.isascii() and c.isalpha():
            continue
        if i > 0 and c.isascii() and c.isdigit():
            continue
        return False
    return True


def parse_int(token: str) -> Optional[int]:
    try:
        return int(token, 0)
    except ValueError:
        pass

    # C-style octal (e.g., 0755)
    if re.match(r'^-?0[0-7]+$', token) is not None:
        return int(token, 8)

    return None


def lookup_const(token: str, consts: Dict[str, int]) -> Optional[int]:
    if token in consts:
        return consts[token]
    return parse_int(token)


# table
def merge_consts(
        arch: str,
        pairs: Iterable[Tuple[str, int]],
        calls: Optional[Dict[str, int]] = None,
) -> Dict[str, int]:
    consts = SortedDict()  # type: Dict[str, int]

    for name, val in pairs:
        if name in consts and consts[name] != val:
            raise SysgenError(
                'const {} has different values for {}: {} vs {}'.format(
                    name, arch, consts[name], val
                )
            )
        consts[name] = val

    # call numbers of pseudo calls are authoritative
    if calls is None:
        calls = config.PSEUDO_CALLS

    for name, nr in calls.items():
        consts[config.NR_PREFIX + name] = nr

    return consts


# files
def read_const_file(path: str) -> List[Tuple[str, int]]:
    pairs = []  # type: List[Tuple[str, int]]

    with open(path) as f:
        for line in f:
            line = line.strip()
            if len(line) == 0 or line.startswith('#'):
                continue

            toks = line.split('=', 1)
            if len(toks) != 2:
                raise SysgenError(
                    'malformed const file {}: no \'=\' in \'{}\''.format(
                        path, line
                    )
                )

            name = toks[0].strip()
            val = parse_int(toks[1].strip())
            if len(name) == 0 or val is None or val < 0 or val >= (1 << 64):
                raise SysgenError(
                    'malformed const file {}: bad value in \'{}\''.format(
                        path, line
                    )
                )

            pairs.append((name, val))

    return pairs


def find_const_files(arch: str, path: str) -> List[str]:
    if not os.path.isdir(path):
        return []

    # top level only, sub-directories are not scanned
    regex = re.compile(r'^.*_{}\.const$'.format(re.escape(arch)))
    return [
        os.path.join(path, name) for name in sorted(os.listdir(path))
        if regex.match(name) is not None and
        os.path.isfile(os.path.join(path, name))
    ]


def load_consts(
        arch: str,
        path: str,
        calls: Optional[Dict[str, int]] = None,
) -> Dict[str, int]:
    pairs = []  # type: List[Tuple[str, int]]

    for item in find_const_files(arch, path):
        logging.info('[{}] load consts from {}'.format(arch, item))
        pairs.extend(read_const_file(item))

    return merge_consts(arch, pairs, calls)
