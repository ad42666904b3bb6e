# run_server.py
import os, sys, traceback, faulthandler
from pathlib import Path

# crash logs go next to the exe (or the project root in dev)
BASE_DIR = Path(sys.executable).resolve().parent if getattr(sys, "frozen", False) else Path(__file__).resolve().parent
LOG_FILE = BASE_DIR / "jewel_ledger_crash.log"

# dump fatal crashes too
faulthandler.enable(open(LOG_FILE, "a", encoding="utf-8"))


def log(msg: str):
    with open(LOG_FILE, "a", encoding="utf-8") as f:
        f.write(msg + "\n")


def main():
    try:
        log("\n--- START ---")
        log(f"exe={sys.executable}")
        log(f"cwd={os.getcwd()}")
        log(f"base_dir={BASE_DIR}")

        import uvicorn

        # settings and app are imported after the crash log is ready
        from jewel_ledger.core.config import settings
        from main import app

        log(f"db={settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME} reminders={settings.REMINDERS_ENABLED}")
        uvicorn.run(app, host=settings.HOST, port=settings.PORT, reload=False, log_level=settings.LOG_LEVEL.lower())

    except Exception:
        err = traceback.format_exc()
        log(err)
        print(err)  # if console is visible
        if getattr(sys, "frozen", False):
            input("\nPress Enter to exit...")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
