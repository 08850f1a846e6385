from pathlib import Path
import os
import sys

# Ensure repo root is on sys.path and is the working directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

from localvault.db import LocalStore
from localvault.config import settings

if __name__ == '__main__':
    store = LocalStore.open(settings.db_path)
    print('Store ready at', settings.db_path, '| keys:', ', '.join(store.keys()) or '(none)')
