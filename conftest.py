import sys
from pathlib import Path

# Make libkfm / kfmcli importable from a checkout without installing.
ROOT = Path(__file__).resolve().parent
for sub in ("kfmstudio/libkfm", "kfmstudio/kfmcli"):
    p = str(ROOT / sub)
    if p not in sys.path:
        sys.path.insert(0, p)
