import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
APP_SCRIPT = os.path.join(BASE_DIR, "app.py")
LOG_FILE = os.getenv("CBT_LOG_FILE", os.path.join(BASE_DIR, "launch.log"))
PROGRESS_DIR = os.getenv("CBT_PROGRESS_DIR", os.path.join(BASE_DIR, ".progress"))

# UI 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8501"))

# 학교 API 설정
API_BASE_URL = os.getenv("CBT_API_BASE_URL", "http://127.0.0.1:3000/api/protected/students")
REQUEST_TIMEOUT = float(os.getenv("CBT_REQUEST_TIMEOUT", "15.0"))
STUDENT_TESTS_PATH = "/protected/students/tests"

# 시험 세션 타이밍
TICK_INTERVAL_SECONDS = 1.0
AUTO_SAVE_INTERVAL_SECONDS = 30.0
TIME_WARNING_SECONDS = 300   # 5분 미만이면 타이머 경고 색상
