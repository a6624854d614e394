"""Allow ``python -m formallang``."""

import sys

from formallang.main import main

sys.exit(main())
