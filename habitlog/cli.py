import logging
import sys
from pathlib import Path

import fncli

from .core.errors import HabitlogError

_VERBOSE_FLAGS = ("-v", "--verbose")


def main():
    user_args = [a for a in sys.argv[1:] if a not in _VERBOSE_FLAGS]
    verbose = len(user_args) != len(sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    fncli.autodiscover(Path(__file__).parent, "habitlog")

    if not user_args:
        user_args = ["habits"]
    argv = ["habitlog", *user_args]
    try:
        code = fncli.dispatch(argv)
    except HabitlogError as e:
        sys.stderr.write(f"{e}\n")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
