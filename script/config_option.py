from typing import Optional

import os

from util import Singleton


class Option(metaclass=Singleton):

    def __init__(self) -> None:
        self._desc = os.environ.get('SYSGEN_DESC', None)  # type: Optional[str]
        self._const = os.environ.get('SYSGEN_CONST', None)  # type: Optional[str]
        self._output = os.environ.get('SYSGEN_OUTPUT', None)  # type: Optional[str]

    # single properties
    @property
    def desc(self) -> str:
        assert self._desc is not None
        return self._desc

    @desc.setter
    def desc(self, value: str) -> None:
        assert self._desc is None
        self._desc = value

    @property
    def const(self) -> str:
        assert self._const is not None
        return self._const

    @const.setter
    def const(self, value: str) -> None:
        assert self._const is None
        self._const = value

    @property
    def output(self) -> str:
        assert self._output is not None
        return self._output

    @output.setter
    def output(self, value: str) -> None:
        assert self._output is None
        self._output = value

    # presence
    def has_desc(self) -> bool:
        return self._desc is not None

    def has_const(self) -> bool:
        return self._const is not None

    def has_output(self) -> bool:
        return self._output is not None
