"""
main.py — 온라인 시험 UI 런처

Starts the Streamlit server for app.py on a free local port and opens the
student's browser on it once the port answers.
"""

import os
import socket
import subprocess
import sys
import time
import logging

_BASE_DIR = os.path.dirname(os.path.abspath(__file__))
if _BASE_DIR not in sys.path:
    sys.path.insert(0, _BASE_DIR)

from config import APP_SCRIPT, BASE_DIR, DEFAULT_HOST, DEFAULT_PORT, LOG_FILE

# ── 로깅 설정 ────────────────────────────────────────────────────────────────────
try:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[
            logging.FileHandler(LOG_FILE, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )
except PermissionError:
    # log file locked by another process: console only
    logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)

# ── 서버 및 네트워크 유틸 ─────────────────────────────────────────────────────────────

def _find_free_port(preferred: int = DEFAULT_PORT) -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((DEFAULT_HOST, preferred))
        except OSError:
            s.bind((DEFAULT_HOST, 0))
        return s.getsockname()[1]

def _wait_for_server(port: int, timeout: float = 30.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        try:
            with socket.create_connection((DEFAULT_HOST, port), timeout=0.5):
                return True
        except OSError:
            time.sleep(0.2)
    return False

def _start_server(port: int) -> subprocess.Popen:
    cmd = [
        sys.executable, "-m", "streamlit", "run", APP_SCRIPT,
        "--server.address", DEFAULT_HOST,
        "--server.port", str(port),
        "--server.headless", "true",
    ]
    logger.info(f"Streamlit server starting - Port: {port}")
    return subprocess.Popen(cmd, cwd=BASE_DIR)

def _open_browser(url: str) -> None:
    import webbrowser
    webbrowser.open(url)

# ── 메인 실행 ────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    logger.info("=== Online Test Application Started ===")
    test_id = sys.argv[1] if len(sys.argv) > 1 else ""

    port = _find_free_port()
    server = _start_server(port)

    if _wait_for_server(port):
        url = f"http://{DEFAULT_HOST}:{port}"
        if test_id:
            url += f"/?test={test_id}"
        logger.info(f"Server ready, opening {url}")
        _open_browser(url)
        try:
            server.wait()
        except KeyboardInterrupt:
            logger.info("Stopped by user.")
            server.terminate()
    else:
        logger.error("Streamlit server did not start in time.")
        server.terminate()
        sys.exit(1)
