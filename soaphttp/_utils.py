# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import asyncio
import contextlib
import typing


def loop_time() -> float:
    return asyncio.get_running_loop().time()


@contextlib.contextmanager
def map_exceptions(exc_map: typing.Dict[typing.Type[Exception], typing.Type[Exception]]) -> typing.Iterator[None]:
    try:
        yield
    except Exception as exc:
        for from_exc, to_exc in exc_map.items():
            if isinstance(exc, from_exc):
                raise to_exc(str(exc) or type(exc).__name__) from exc
        raise
