import logging
import os
from datetime import datetime
from pathlib import Path

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'

def setup_logging(log_level: str = "INFO", log_dir: str = "logs", log_to_file: bool = True) -> logging.Logger:
    """Configure logging for the entire application"""
    level = getattr(logging, log_level.upper())
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # File handler
    if log_to_file:
        Path(log_dir).mkdir(exist_ok=True)
        log_filename = f"sepsis_risk_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        file_handler = logging.FileHandler(os.path.join(log_dir, log_filename))
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    return root_logger
