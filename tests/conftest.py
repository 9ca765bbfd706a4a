import os
import sys

# Ensure the project root is on the module search path when the package is not
# installed. This allows ``import alitecs_adr`` to succeed during test
# collection without requiring an editable installation.
ROOT_DIR = os.path.dirname(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Figures are rendered off-screen during the tests
os.environ.setdefault("MPLBACKEND", "Agg")
