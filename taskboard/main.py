# Rev 0.1.0

# taskboard/main.py  (Rev 0.1.0)
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple

from PySide6.QtCore import QCoreApplication, QTimer

from taskboard.app_context import AppContext
from taskboard.utils.logging_setup import get_logger, setup_logging
from taskboard.utils.paths import APP_NAME

# quit a little after the orphan sweep has fired
_EXIT_MARGIN_MS = 100


def bootstrap(db_path: Optional[Path | str] = None, *, log_dir: Optional[Path] = None,
              **context_kwargs: Any) -> Tuple[AppContext, Path]:
    logfile = setup_logging(APP_NAME, log_dir=log_dir)
    ctx = AppContext.create(db_path, **context_kwargs)
    return ctx, logfile


def print_summary(ctx: AppContext, out=None) -> None:
    out = out if out is not None else sys.stdout
    for project in ctx.store.projects:
        progress = ctx.store.calculate_dynamic_progress(project.id)
        print(f"{project.id}\t{progress:>3}%\t{project.title}", file=out)


def main(argv: Optional[Sequence[str]] = None) -> int:
    app = QCoreApplication.instance() or QCoreApplication(list(argv if argv is not None else sys.argv))
    QCoreApplication.setApplicationName(APP_NAME)

    ctx, logfile = bootstrap()
    print(f"[logging] Writing to: {logfile}")
    get_logger("main").info("Loaded %d project(s), %d task(s)", len(ctx.store.projects), len(ctx.store.tasks))
    print_summary(ctx)

    QTimer.singleShot(ctx.sweeper.delay_ms + _EXIT_MARGIN_MS, app.quit)
    try:
        return app.exec()
    finally:
        ctx.close()


if __name__ == "__main__":
    sys.exit(main())
