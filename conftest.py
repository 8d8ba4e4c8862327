import os
import sys

# Flat layout: make `config`, `core`, `ui` importable without installing.
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
