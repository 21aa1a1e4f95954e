# Ensure the repository root is on sys.path so the package imports without installation
import sys
import os

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))

if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
