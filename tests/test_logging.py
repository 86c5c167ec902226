"""
Logging setup - module names on every entry.
"""

from structlog.testing import capture_logs

from taskapi.core.logging import add_logger_name, get_logger


def test_logger_carries_module_name():
    with capture_logs() as logs:
        get_logger("taskapi.services.role_service").info("Roles listed")
    assert logs[0]["logger"] == "taskapi.services.role_service"


def test_add_logger_name_keeps_bound_name():
    assert add_logger_name(None, "info", {"logger": "taskapi.main"})["logger"] == "taskapi.main"
    assert add_logger_name(None, "info", {})["logger"] == "taskapi"

