"""
test_observability.py — Logging, performance tracking and import safety.

Verifies that:
  1. Every costmodel module imports cleanly (no circular imports).
  2. JSONFormatter emits valid JSON carrying block_id / duration_ms extras.
  3. PerformanceTracker counts correctly under concurrent writers.
  4. The timed decorator records durations even when the call raises.
  5. setup_logging lowers only the requested pipeline components to DEBUG.
"""

import importlib
import json
import logging
import threading
import pytest


_MODULES = [
    "costmodel.config",
    "costmodel.models.conditions",
    "costmodel.models.rate_schema",
    "costmodel.models.config_schema",
    "costmodel.models.block_schema",
    "costmodel.models.results",
    "costmodel.services.fx_resolver",
    "costmodel.services.rates_engine",
    "costmodel.services.policies_engine",
    "costmodel.services.block_cost_engine",
    "costmodel.services.project_aggregator",
    "costmodel.services.cost_model_engine",
    "costmodel.services.perf_monitor",
    "costmodel.services.logging_config",
    "costmodel.services.middleware",
    "costmodel.api.cost_model_routes",
]


class TestImportSafety:

    @pytest.mark.parametrize("module_name", _MODULES)
    def test_module_imports(self, module_name):
        assert importlib.import_module(module_name) is not None


class TestJSONFormatter:

    def _record(self, **extra):
        record = logging.LogRecord(
            name="cost-model.calculator", level=logging.INFO, pathname=__file__,
            lineno=1, msg="block costed", args=(), exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_base_fields(self):
        from costmodel.services.logging_config import JSONFormatter
        payload = json.loads(JSONFormatter().format(self._record()))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "cost-model.calculator"
        assert payload["message"] == "block costed"
        assert "block_id" not in payload

    def test_extras_copied(self):
        from costmodel.services.logging_config import JSONFormatter
        payload = json.loads(JSONFormatter().format(self._record(block_id="B-001", duration_ms=1.5)))
        assert payload["block_id"] == "B-001"
        assert payload["duration_ms"] == 1.5

    def test_exception_included(self):
        from costmodel.services.logging_config import JSONFormatter
        try:
            raise ValueError("boom")
        except ValueError:
            import sys
            record = self._record()
            record.exc_info = sys.exc_info()
        payload = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in payload["exception"]


class TestPerformanceTracker:

    def test_counts_and_reset(self):
        from costmodel.services.perf_monitor import PerformanceTracker
        t = PerformanceTracker()
        t.record_blocks(3)
        t.record_projection()
        t.record_duration("run_full_projection", 10.0)
        t.record_duration("run_full_projection", 20.0)
        t.record_failure("calculate_block")
        metrics = t.get_metrics()
        assert metrics["blocks_costed"] == 3
        assert metrics["projections_run"] == 1
        assert metrics["avg_durations_ms"] == {"run_full_projection": 15.0}
        assert metrics["slowest_operation"] == "run_full_projection"
        assert metrics["slowest_operation_ms"] == 20.0
        assert metrics["failure_count"] == 1
        t.reset()
        assert t.get_metrics()["blocks_costed"] == 0
        assert t.get_metrics()["slowest_operation"] is None

    def test_thread_safe_counting(self):
        from costmodel.services.perf_monitor import PerformanceTracker
        t = PerformanceTracker()

        def work():
            for _ in range(1000):
                t.record_blocks(1)

        threads = [threading.Thread(target=work) for _ in range(8)]
        for th in threads:
            th.start()
        for th in threads:
            th.join()
        assert t.get_metrics()["blocks_costed"] == 8000

    def test_timed_records_on_exception(self):
        from costmodel.services.perf_monitor import timed, tracker
        tracker.reset()

        @timed
        def explode():
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            explode()
        assert "explode" in tracker.get_metrics()["avg_durations_ms"]
        tracker.reset()


class TestContextTextFormatter:

    def test_context_appended(self):
        from costmodel.services.logging_config import ContextTextFormatter
        record = logging.LogRecord(
            name="cost-model.calculator", level=logging.DEBUG, pathname=__file__,
            lineno=1, msg="block costed", args=(), exc_info=None,
        )
        record.block_id = "B-001"
        line = ContextTextFormatter().format(record)
        assert "[cost-model.calculator] DEBUG: block costed" in line
        assert line.endswith("| block_id=B-001")


class TestSetupLogging:

    @pytest.fixture(autouse=True)
    def _restore_logging(self):
        from costmodel.services.logging_config import COMPONENT_LOGGERS
        root = logging.getLogger()
        saved = (root.level, list(root.handlers),
                 {name: logging.getLogger(name).level for name in COMPONENT_LOGGERS})
        yield
        root.setLevel(saved[0])
        root.handlers = saved[1]
        for name, level in saved[2].items():
            logging.getLogger(name).setLevel(level)

    def test_debug_component_short_name(self):
        from costmodel.services.logging_config import setup_logging
        setup_logging(level="WARNING", json_output=False, debug_components=["calculator"])
        assert logging.getLogger("cost-model.calculator").isEnabledFor(logging.DEBUG)
        assert not logging.getLogger("cost-model.rates").isEnabledFor(logging.INFO)

    def test_unknown_component_ignored(self):
        from costmodel.services.logging_config import setup_logging
        setup_logging(level="INFO", debug_components=["mystery"])
        assert not logging.getLogger("cost-model.engine").isEnabledFor(logging.DEBUG)
