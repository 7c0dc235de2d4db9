import logging
from enum import Enum
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler


class Verbosity(Enum):
    NORMAL = 0
    VERBOSE = 1
    VERY_VERBOSE = 2


def cli_flags_to_verbosity(verbose_flags: Optional[List[bool]]) -> Verbosity:
    if not verbose_flags:
        return Verbosity.NORMAL
    elif len(verbose_flags) == 1:
        return Verbosity.VERBOSE
    else:
        return Verbosity.VERY_VERBOSE


def suppress_noisy_logs():
    # disable INFO logs from LiteLLM and its http clients
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    # when running in --verbose mode we don't want to see DEBUG logs from these libraries
    logging.getLogger("httpcore").setLevel(logging.INFO)
    logging.getLogger("urllib3").setLevel(logging.INFO)
    logging.getLogger("backoff").setLevel(logging.WARNING)


def init_logging(verbose_flags: Optional[List[bool]] = None) -> Console:
    verbosity = cli_flags_to_verbosity(verbose_flags)

    level = logging.DEBUG if verbosity != Verbosity.NORMAL else logging.INFO
    logging.basicConfig(
        force=True,
        level=level,
        format="%(message)s",
        handlers=[
            RichHandler(
                show_level=False,
                markup=True,
                show_time=False,
                show_path=False,
                console=Console(width=None),
            )
        ],
    )
    if verbosity != Verbosity.VERY_VERBOSE:
        suppress_noisy_logs()

    logging.debug(f"verbosity is {verbosity}")

    return Console()
