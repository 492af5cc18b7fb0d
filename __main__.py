"""CLI entry point for gltf-components (``python .``).

Delegates to gltf_components.cli; see ``python . --help``.
"""

import sys

from gltf_components.cli import main

if __name__ == "__main__":
    sys.exit(main())
