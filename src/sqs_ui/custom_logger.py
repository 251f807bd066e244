import json
import logging


class CustomFormatter(logging.Formatter):
    COLORS = {
        logging.DEBUG: "\x1b[36;21m",  # grey
        logging.INFO: "\x1b[32;21m",  # green
        logging.WARNING: "\x1b[33;21m",  # yellow
        logging.ERROR: "\x1b[31;21m",  # red
        logging.CRITICAL: "\x1b[31;1m",  # bold red
    }
    RESET = "\x1b[0m"
    FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(module)s.%(funcName)s:%(lineno)d | %(message)s"

    def __init__(self):
        super().__init__(self.FORMAT, "%Y-%m-%d %H:%M:%S")

    def format(self, record):
        color = self.COLORS.get(record.levelno, self.RESET)
        levelname = record.levelname
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers"""

    def format(self, record):
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def parse_level(level_str: str) -> int:
    name = (level_str or "").strip().upper()
    if name == "WARN":
        name = "WARNING"
    level = getattr(logging, name, None)
    return level if isinstance(level, int) else logging.INFO  # fallback if invalid


def configure_logging(level: str = "info", fmt: str = "text") -> logging.Logger:
    """Install a single stream handler on the root logger"""
    handler = logging.StreamHandler()
    if fmt.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(CustomFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(parse_level(level))
    root_logger.handlers = [handler]

    # shutup werkzeug
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.INFO)
    logging.getLogger("botocore").setLevel(logging.INFO)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)
    logging.getLogger("urllib3.poolmanager").setLevel(logging.WARNING)
    logging.getLogger("urllib3.util.retry").setLevel(logging.WARNING)
    return root_logger
