"""Package entry point for ``python -m cwr_converter``.

WHY: Users run the converter as ``python -m cwr_converter works.csv`` for
CLI mode, or ``python -m cwr_converter --serve`` to start the HTTP API.

RULES:
- ``--serve`` starts the FastAPI app under uvicorn
- Without ``--serve``, falls through to the CLI
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from cwr_converter.server.app import run_api
        run_api()
    else:
        from cwr_converter.cli import main
        main()
