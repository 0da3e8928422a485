"""minicc — a C-subset compiler targeting a byte-addressed stack machine."""

from .run import run  # noqa: F401
from .api import (  # noqa: F401
    compile_source,
    dump_ir,
    dump_cfg,
    dump_layout,
    run_source,
)
