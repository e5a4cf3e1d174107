# tests/conftest.py

import os
import tempfile

# web.app builds a module-level app on import; keep it away from the real data folder.
_SESSION_DIR = tempfile.mkdtemp(prefix="owtracker-tests-")
os.environ.setdefault("OWTRACKER_DB_PATH", os.path.join(_SESSION_DIR, "session.db"))
os.environ.setdefault("OWTRACKER_UPLOAD_DIR", os.path.join(_SESSION_DIR, "uploads"))
os.environ.setdefault("OWTRACKER_FRONTEND_DIST", os.path.join(_SESSION_DIR, "no-frontend"))
