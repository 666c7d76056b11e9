import os
import sys


# Put `src/backend` on sys.path so `import common...`, `import pipelines...` and
# `import connectors...` resolve when pytest runs from the repository root.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)
