from typing import List, Dict

import sys
import logging

from argparse import ArgumentParser, Namespace

import asciitree  # type: ignore
from termcolor import colored

import config
from sysgen_basis import SysgenError
from sysgen_codegen import Generator_SYSCALLS, Generator_TARGET
from sysgen_schema import Description
from sysgen_target import Target, formulate_targets
from util import prepdn, enable_coloring_in_logging


def _prepare_options(args: Namespace) -> None:
    # environment settings take precedence, the command line fills the rest
    opt = config.OPTION()

    if not opt.has_desc():
        opt.desc = config.DESC_FILE if args.desc is None else args.desc

    if not opt.has_const():
        opt.const = config.DESC_PATH if args.const is None else args.const

    if not opt.has_output():
        opt.output = config.OUTPUT_PATH if args.output is None \
            else args.output


# actions
def _resource_tree(target: Target, name: str) -> Dict[str, Dict]:
    return {
        key: _resource_tree(target, key)
        for key, res in target.resources.items()
        if len(res.kind) >= 2 and res.kind[-2] == name
    }


def show_resources(target: Target) -> None:
    forest = {
        '{} {}'.format(key, colored(res.dump(), 'cyan')):
            _resource_tree(target, key)
        for key, res in target.resources.items()
        if len(res.kind) == 1
    }

    print(asciitree.LeftAligned()({target.arch: forest}))


def show_calls(target: Target) -> None:
    for call in target.calls:
        if call.available():
            status = colored('{:>8}'.format(call.nr), 'green')
        else:
            status = colored('{:>8}'.format('-'), 'red')

        print('{} {}'.format(status, call.dump()))
        if not call.available():
            print(' ' * 9 + colored(call.reason, 'yellow'))


def show_structs(target: Target) -> None:
    for key in sorted(target.structs.keys(), key=str):
        print('{} {}'.format(
            colored(str(key), 'yellow', attrs=['bold']),
            target.structs[key].dump()
        ))


def main(argv: List[str]) -> int:
    # setup argument parser
    parser = ArgumentParser()

    # logging configs
    parser.add_argument(
        '-v', '--verbose', action='count', default=1,
        help='Verbosity level, can be specified multiple times, default to 1',
    )

    # path configs
    parser.add_argument(
        '-d', '--desc', default=None,
        help='Path to the description (json), default to sys/desc.json',
    )
    parser.add_argument(
        '-k', '--const', default=None,
        help='Directory holding the *_<arch>.const files, default to sys/',
    )

    # action selection
    subs = parser.add_subparsers(dest='cmd')

    sub_compile = subs.add_parser(
        'compile',
        help='Compile the description for the architectures',
    )
    sub_compile.add_argument(
        '-a', '--arch', action='append', choices=config.ARCH_NAMES,
        help='Architecture to compile for, default to all',
    )
    sub_compile.add_argument(
        '-o', '--output', default=None,
        help='Output directory, default to generated/',
    )
    sub_compile.add_argument(
        '-c', '--clean', action='store_true',
        help='Clean existing files',
    )
    sub_compile.add_argument(
        '-j', '--jobs', type=int, default=config.NCPU,
        help='Number of architectures to compile in parallel, '
             'default to the number of CPUs',
    )

    sub_show = subs.add_parser(
        'show',
        help='Show the compiled description of one architecture',
    )
    sub_show.add_argument(
        'arch', choices=config.ARCH_NAMES,
        help='Architecture to show',
    )
    sub_show.add_argument(
        '-r', '--resources', action='store_true',
        help='Show the resource hierarchy instead of the calls',
    )
    sub_show.add_argument(
        '-s', '--structs', action='store_true',
        help='Show the struct instances instead of the calls',
    )

    # parse
    args = parser.parse_args(argv)
    if 'output' not in args:
        args.output = None

    # prepare logs
    enable_coloring_in_logging()
    logging.basicConfig(
        format='%(asctime)s %(levelname)s %(message)s',
        level=logging.WARNING - (logging.DEBUG - logging.NOTSET) * args.verbose
    )

    if args.cmd is None:
        parser.print_help()
        return -1

    # prepare options
    _prepare_options(args)
    opt = config.OPTION()

    try:
        desc = Description.load(opt.desc)

        if args.cmd == 'compile':
            # no output unless every architecture compiles
            targets = formulate_targets(desc, opt.const, args.arch, args.jobs)

            prepdn(opt.output, args.clean)
            for target in targets:
                Generator_TARGET(opt.output, target).save()
            Generator_SYSCALLS(opt.output, targets).save()

        elif args.cmd == 'show':
            target = formulate_targets(desc, opt.const, [args.arch])[0]
            if args.resources:
                show_resources(target)
            elif args.structs:
                show_structs(target)
            else:
                show_calls(target)

        else:
            parser.print_help()
            return -1

    except SysgenError as ex:
        logging.critical(str(ex))
        return 1

    return 0


def _entry() -> None:
    sys.exit(main(sys.argv[1:]))


if __name__ == '__main__':
    _entry()
