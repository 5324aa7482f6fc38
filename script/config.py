from typing import NamedTuple, List, Dict

import os
import multiprocessing

from config_option import Option


# option settings
def OPTION() -> Option:
    return Option()


# project configs
PROJ_PATH = os.path.abspath(os.path.join(__file__, '..', '..'))

# system configs
NCPU = multiprocessing.cpu_count()

# description configs
DESC_PATH = os.path.join(PROJ_PATH, 'sys')
DESC_FILE = os.path.join(DESC_PATH, 'desc.json')

# output configs
OUTPUT_PATH = os.path.join(PROJ_PATH, 'generated')
OUTPUT_EXECUTOR_HEADER = 'syscalls.h'


def OUTPUT_TARGET_NAME(arch: str) -> str:
    return 'sys_{}.json'.format(arch)


# architecture configs
class Arch(NamedTuple):
    name: str
    cdefs: List[str]


ARCHS = [
    Arch('amd64', ['__x86_64__']),
    Arch('arm64', ['__aarch64__']),
    Arch('ppc64le', ['__ppc64__', '__PPC64__', '__powerpc64__']),
]

ARCH_NAMES = [arch.name for arch in ARCHS]

# compiler configs
PTR_SIZE = 8

# the executor runs at most this many procs at once (MAX_PIDS)
MAX_PIDS = 32

# call number of a call that is not available on the architecture
NR_UNAVAILABLE = -1

# prefix of the constants holding call numbers
NR_PREFIX = '__NR_'

# calls implemented by the executor itself, numbered out of the kernel range
PSEUDO_CALL_PREFIX = 'syz_'
PSEUDO_CALLS = {
    'syz_test': 1000001,
    'syz_open_dev': 1000002,
    'syz_open_pts': 1000003,
    'syz_fuse_mount': 1000004,
    'syz_fuseblk_mount': 1000005,
    'syz_emit_ethernet': 1000006,
    'syz_kvm_setup_cpu': 1000007,
}  # type: Dict[str, int]
