"""Allow ``python -m chessbook``."""

from chessbook.app import main

raise SystemExit(main())
