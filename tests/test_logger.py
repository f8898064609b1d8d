import logging

from inventory_timeline.logger import setup_logger


class TestSetupLogger:
    def test_console_and_rotating_file(self, tmp_path):
        logger = setup_logger("inventory_timeline.test_setup", log_level="INFO", log_dir=tmp_path)
        kinds = {type(h).__name__ for h in logger.handlers}
        assert kinds == {"StreamHandler", "RotatingFileHandler"}

        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "INFO - hello" in (tmp_path / "app.log").read_text(encoding="utf-8")

    def test_second_call_adds_no_handlers(self, tmp_path):
        first = setup_logger("inventory_timeline.test_twice", log_dir=tmp_path)
        count = len(first.handlers)
        second = setup_logger("inventory_timeline.test_twice", log_dir=tmp_path)
        assert second is first
        assert len(second.handlers) == count

    def test_quiets_http_libraries(self, tmp_path):
        setup_logger("inventory_timeline.test_noisy", log_dir=tmp_path)
        assert logging.getLogger("urllib3").level == logging.WARNING
