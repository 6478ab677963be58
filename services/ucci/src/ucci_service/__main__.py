"""Allow ``python -m ucci_service``."""

from .cli import main

raise SystemExit(main())
