import logging
import os

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def check_folder_exist(path: str = settings.LOG_DIR):
    if not os.path.exists(path):
        os.makedirs(path)

def setup_logging(level: str = settings.LOG_LEVEL, log_dir: str = settings.LOG_DIR):
    """Configure root logging once: console plus a file under ``log_dir``."""
    root = logging.getLogger()
    if getattr(root, "_dialer_configured", False):
        return
    check_folder_exist(log_dir)
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    file_handler = logging.FileHandler(os.path.join(log_dir, "app.log"), encoding="utf-8")
    file_handler.setFormatter(formatter)

    root.addHandler(console)
    root.addHandler(file_handler)
    root.setLevel(level.upper())
    root._dialer_configured = True
