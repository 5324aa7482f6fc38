from typing import Any, Callable, Dict, Optional

import pytest

from config_option import Option
from sysgen_const import merge_consts
from sysgen_schema import Description
from sysgen_type import Scope
from util import Singleton


@pytest.fixture(autouse=True)
def fresh_option(monkeypatch: pytest.MonkeyPatch) -> Any:
    for key in ('SYSGEN_DESC', 'SYSGEN_CONST', 'SYSGEN_OUTPUT'):
        monkeypatch.delenv(key, raising=False)

    Singleton._insts.pop(Option, None)
    yield
    Singleton._insts.pop(Option, None)


@pytest.fixture
def scope_of() -> Callable[..., Scope]:
    def _make(
            data: Optional[Dict[str, Any]] = None,
            consts: Optional[Dict[str, int]] = None,
            arch: str = 'amd64',
    ) -> Scope:
        desc = Description.parse(data or {})
        table = merge_consts(arch, (consts or {}).items(), {})
        return Scope(arch, desc, table)

    return _make
