"""Allow ``python -m scaffoldgen``."""

import sys

from scaffoldgen.pipeline import main

sys.exit(main())
