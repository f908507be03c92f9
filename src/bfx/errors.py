## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘


class BfxError(Exception):
    def __init__(self, message: str = "", *, bfx_pos=None):
        """Base class for all bfx-raised errors."""
        super().__init__(message)
        self.bfx_pos = bfx_pos

class BfxParseError(BfxError):
    def __init__(self, message, *, filename=None, line=None, column=None, token=None):
        super().__init__(message)
        self.filename = filename
        self.line = line
        self.column = column
        self.token = token

class BfxUnmatchedLoop(BfxParseError):
    """A closing bracket was found without any opening bracket before it."""
    pass

class BfxIncompleteParse(BfxParseError):
    """The source ended while at least one opening bracket was still unmatched."""
    pass


class BfxResourceError(BfxError, OSError):
    def __init__(self, message, *, filename=None):
        super().__init__(message)
        self.filename = filename

    def __str__(self):
        # OSError would otherwise render as `[Errno None] None: '<filename>'`.
        return self.args[0] if self.args else ''

class BfxToolchainError(BfxError, RuntimeError):
    def __init__(self, message, *, command=None, returncode=None, stderr=None):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr

class BfxInternalError(BfxError, AssertionError):
    pass
