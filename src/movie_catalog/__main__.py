"""Allow ``python -m movie_catalog``."""

import sys

from movie_catalog.cli import main

sys.exit(main())
