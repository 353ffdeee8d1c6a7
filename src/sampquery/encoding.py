"""Legacy codepage text decoding for reply string fields."""

from __future__ import annotations

import codecs
import functools
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

# Most SA-MP servers send hostnames and rules in a Windows single-byte codepage.
DEFAULT_CODEPAGE = "cp1251"


def decode_text(raw: bytes, codepage: str = DEFAULT_CODEPAGE) -> str:
    """Decode raw reply bytes using a single-byte codepage.

    Undecodable bytes are replaced rather than raising, since server-supplied
    names are free-form.
    """
    return raw.decode(codepage, errors="replace")


def make_decoder(codepage: str | None = DEFAULT_CODEPAGE) -> Callable[[bytes], str] | None:
    """Return a decoder bound to ``codepage``.

    Returns None when ``codepage`` is None, meaning fields are left as bytes.

    Raises:
        LookupError: If the codepage is not known to Python.
    """
    if codepage is None:
        return None
    codecs.lookup(codepage)
    return functools.partial(decode_text, codepage=codepage)
