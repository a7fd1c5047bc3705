# desktop/app.py
# Launch FastAPI in a background thread and open a native window with pywebview.

import asyncio
import sys
import threading
import time
from pathlib import Path

import uvicorn
import webview

# Ensure the project root (which contains 'backend/') is on sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Import the FastAPI app object directly (avoid string import)
from backend.app import app as fastapi_app  # noqa: E402
from backend.services.report import render_export  # noqa: E402
from backend.services.storage import save_bytes  # noqa: E402

EXPORT_TIMEOUT = 60  # seconds


async def _render_on_loop(session, fmt):
    return render_export(session, fmt)


class Api:
    """
    JS-bridged API available at window.pywebview.api in the frontend.
    Provides a native 'Save As...' for the station exports.
    """
    def __init__(self, app=fastapi_app):
        self._app = app

    def save_export(self, fmt="csv"):
        try:
            session = getattr(self._app.state, "session", None)
            loop = getattr(self._app.state, "loop", None)
            if session is None or loop is None:
                return {"ok": False, "error": "Station data is not loaded yet."}

            # Live statuses, recomputed at export time on the loop that owns the session
            future = asyncio.run_coroutine_threadsafe(_render_on_loop(session, fmt), loop)
            buf, filename, _ = future.result(timeout=EXPORT_TIMEOUT)

            # Open native Save As dialog
            win = webview.windows[0]
            # NOTE: create_file_dialog returns a list/tuple of selected paths or None
            paths = win.create_file_dialog(webview.FileDialog.SAVE, save_filename=filename)
            if not paths:
                return {"ok": False, "cancelled": True}
            path = paths[0] if isinstance(paths, (list, tuple)) else paths
            save_bytes(buf, Path(path))
            return {"ok": True, "path": str(path)}
        except Exception as e:
            return {"ok": False, "error": str(e)}


def run_server():
    # If port 8000 is already in use, stop any previous run first.
    uvicorn.run(fastapi_app, host="127.0.0.1", port=8000, reload=False, log_level="info")


if __name__ == "__main__":
    t = threading.Thread(target=run_server, daemon=True)
    t.start()

    # Give the server a moment to bind the port before opening the window
    time.sleep(0.8)

    webview.create_window(
        "Fire Safety Station Manager",
        "http://127.0.0.1:8000",
        width=1280,
        height=860,
        resizable=True,
        js_api=Api(),
    )
    webview.start()
