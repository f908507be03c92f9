## bfx — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import io

from .types import Parameters, EofPolicy, MachineState
from .errors import *
from .runtime import Session
from .parser import build_loops, position_of
from .compiler import transpile, compile_program

_SESSION = None


def execute(source: str | bytes, input: bytes = b'', diagnostics=None, **params) -> bytes:
    """Run a program in a throwaway session and return everything it wrote."""
    output = io.BytesIO()
    with Session(Parameters(**params), output=output, input=io.BytesIO(input), diagnostics=diagnostics) as session:
        session.run(source)
    return output.getvalue()


def __getattr__(name):
    global _SESSION
    if name.startswith('__'): raise AttributeError(name)
    if _SESSION is None: _SESSION = Session()
    return getattr(_SESSION, name)
