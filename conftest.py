# Keep the repository root on sys.path so `bot`, `config`, `utils` and `auth`
# import the same way under pytest as they do from main.py.
import os
import sys

root = os.path.dirname(os.path.abspath(__file__))
if root not in sys.path:
    sys.path.insert(0, root)
