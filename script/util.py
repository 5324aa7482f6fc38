from typing import Any, Type, TypeVar, Callable, List, Dict, Optional

import os
import shutil
import logging

from multiprocessing import Pool


# filesystem operations
def prepdn(path: str, override: bool = False) -> None:
    if os.path.exists(path) and override:
        shutil.rmtree(path)
    os.makedirs(path, exist_ok=True)


def prepfn(path: str, override: bool = False) -> None:
    if os.path.exists(path) and override:
        os.unlink(path)
    os.makedirs(os.path.dirname(path), exist_ok=True)


# multi-processing
T = TypeVar('T')
R = TypeVar('R')


def parallelize(
        func: Callable[[T], R],
        args: List[T],
        ncpu: Optional[int] = None) -> List[R]:
    with Pool(ncpu) as pool:
        try:
            return pool.map(func, args)
        except KeyboardInterrupt:
            pool.terminate()
            pool.join()
            raise RuntimeError('Interrupted')


# design patterns
class Singleton(type):
    _insts = {}  # type: Dict[Type, Any]

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        if cls not in cls._insts:
            cls._insts[cls] = super(Singleton, cls).__call__(*args, **kwargs)
        return cls._insts[cls]


# logging utils
def enable_coloring_in_logging() -> None:
    logging.addLevelName(
        logging.CRITICAL,
        '\033[1;31m%s\033[1;0m' % logging.getLevelName(logging.CRITICAL),
    )
    logging.addLevelName(
        logging.ERROR,
        '\033[1;31m%s\033[1;0m' % logging.getLevelName(logging.ERROR),
    )
    logging.addLevelName(
        logging.WARNING,
        '\033[1;33m%s\033[1;0m' % logging.getLevelName(logging.WARNING),
    )
    logging.addLevelName(
        logging.INFO,
        '\033[1;32m%s\033[1;0m' % logging.getLevelName(logging.INFO),
    )
    logging.addLevelName(
        logging.DEBUG,
        '\033[1;35m%s\033[1;0m' % logging.getLevelName(logging.DEBUG),
    )
