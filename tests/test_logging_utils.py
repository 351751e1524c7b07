import sys, pathlib; sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))
import logging

from llm_lead_quiz_gen.core.logging_utils import configure_logging, rotate_log_if_needed


def test_rotate_log_when_size_exceeded(tmp_path, monkeypatch):
    monkeypatch.setenv("LLM_LEAD_QUIZ_LOG_MAX_BYTES", "10")
    monkeypatch.setenv("LLM_LEAD_QUIZ_LOG_MAX_AGE_HOURS", "0")
    log = tmp_path / "generation.log"
    log.write_text("x" * 50, encoding="utf-8")

    rotate_log_if_needed(log)

    assert not log.exists()
    assert len(list(tmp_path.glob("generation.*.log"))) == 1


def test_small_log_is_kept(tmp_path, monkeypatch):
    monkeypatch.setenv("LLM_LEAD_QUIZ_LOG_MAX_BYTES", "1000")
    monkeypatch.setenv("LLM_LEAD_QUIZ_LOG_MAX_AGE_HOURS", "0")
    log = tmp_path / "generation.log"
    log.write_text("short", encoding="utf-8")

    rotate_log_if_needed(log)

    assert log.exists()


def test_configure_logging_writes_file(tmp_path):
    log = tmp_path / "logs" / "generation.log"
    configure_logging(log, level="DEBUG")
    logging.getLogger("llm_lead_quiz_gen.core.test").info("hello pipeline")
    for handler in logging.getLogger("llm_lead_quiz_gen").handlers:
        handler.flush()
    assert "hello pipeline" in log.read_text(encoding="utf-8")
    configure_logging()
