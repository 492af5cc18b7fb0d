"""Allow ``python -m gltf_components``."""

import sys

from .cli import main

sys.exit(main())
