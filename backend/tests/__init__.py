"""Test configuration."""

from pathlib import Path
import os

os.environ["ENVIRONMENT"] = "testing"
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ["OPENAI_API_KEY"] = ""

# Guardrail: never run tests against the development database or uploads.
repo_root = Path(__file__).resolve().parents[2]
test_root = repo_root / "scratch" / "tests"
db_url = os.environ.get("DATABASE_URL", "")
if not db_url or "captains_log.db" in db_url.replace("\\", "/"):
    test_db = test_root / "captains_log.test.db"
    test_db.parent.mkdir(parents=True, exist_ok=True)
    os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{test_db.as_posix()}"
os.environ.setdefault("MEDIA_STORAGE_PATH", str(test_root / "uploads"))
os.environ.setdefault("CLIENT_STATE_PATH", str(test_root / "client_state.json"))
os.environ.setdefault("CLIENT_SHELL_PATH", str(test_root / "dist"))
