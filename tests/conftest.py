import os
import tempfile

# Keep the module-level registry of the API app out of the working directory.
os.environ.setdefault("REPODOCK_WORKSPACE_ROOT", tempfile.mkdtemp(prefix="repodock_tests_"))
os.environ.setdefault("REPODOCK_TELEMETRY_ENABLED", "true")
