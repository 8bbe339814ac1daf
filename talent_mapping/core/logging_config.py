import logging
import sys
from enum import Enum

from pythonjsonlogger.json import JsonFormatter

# Assessment context callers attach through ``extra=``
CONTEXT_FIELDS = ("instrument", "question_key", "result_id", "job_id", "attempt")


class AssessmentJsonFormatter(JsonFormatter):
    """
    One JSON object per record. Context passed through ``extra`` is flattened
    to plain JSON values: instruments by their id, question keys by their
    persisted form.
    """

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = log_record.get('timestamp') or record.created
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        for name in CONTEXT_FIELDS:
            if name not in log_record:
                continue
            value = log_record[name]
            if isinstance(value, Enum):
                log_record[name] = value.value
            elif value is not None and not isinstance(value, (str, int, float)):
                log_record[name] = str(value)


def setup_logging(log_level_str: str = "INFO") -> logging.Logger:
    """
    Configures structured JSON logging on the root logger.

    Safe to call more than once: the JSON handler is only added the first
    time, later calls just adjust the level.
    """
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not any(isinstance(h.formatter, AssessmentJsonFormatter) for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(AssessmentJsonFormatter('%(timestamp)s %(level)s %(logger)s %(message)s'))
        root_logger.addHandler(handler)
        root_logger.info(f"JSON logging enabled at {logging.getLevelName(log_level)}")
    return root_logger
