# PATH: tests/unit/test_logging_contract.py
"""
Tests for the logging contract.

No kwargs to logger calls; contextual fields travel only as
extra={"context": {...}}.
"""

import ast
import json
import logging
import unittest
from pathlib import Path
from typing import Any, Dict, List

from core.logging import (
    ConsoleFormatter,
    JSONFormatter,
    clear_global_context,
    get_logger,
    set_global_context,
)

PROJECT_ROOT = Path(__file__).parent.parent.parent
SOURCE_PACKAGES = ["api", "cache", "chains", "config", "core", "discovery", "gateway", "monitoring"]


class TestLoggingContractEnforcement(unittest.TestCase):
    """AST-based tests for logging contract."""

    ALLOWED_KWARGS = {"exc_info", "extra", "stack_info", "stacklevel"}

    def _find_logger_violations(self, source_code: str) -> List[Dict[str, Any]]:
        """Find logger calls with invalid kwargs using AST."""
        violations = []
        tree = ast.parse(source_code)

        for node in ast.walk(tree):
            if not isinstance(node, ast.Call) or not isinstance(node.func, ast.Attribute):
                continue

            method_name = node.func.attr
            if method_name not in ("debug", "info", "warning", "error", "critical", "exception"):
                continue

            obj = node.func.value
            if isinstance(obj, ast.Name):
                is_logger = "log" in obj.id.lower()
            elif isinstance(obj, ast.Attribute):
                is_logger = "log" in obj.attr.lower()
            else:
                is_logger = False

            if not is_logger:
                continue

            for kw in node.keywords:
                if kw.arg and kw.arg not in self.ALLOWED_KWARGS:
                    violations.append({
                        "line": node.lineno,
                        "method": method_name,
                        "invalid_kwarg": kw.arg,
                    })

        return violations

    def _source_files(self) -> List[Path]:
        files = [PROJECT_ROOT / "run_gateway.py"]
        for package in SOURCE_PACKAGES:
            files.extend(sorted((PROJECT_ROOT / package).glob("*.py")))
        return [f for f in files if f.exists()]

    def test_sources_have_no_invalid_kwargs(self):
        """Every gateway module passes context only via extra."""
        files = self._source_files()
        self.assertGreater(len(files), 10)

        messages = []
        for filepath in files:
            source = filepath.read_text(encoding="utf-8")
            for v in self._find_logger_violations(source):
                messages.append(
                    f"  {filepath.relative_to(PROJECT_ROOT)}:{v['line']}: "
                    f"logger.{v['method']}(..., {v['invalid_kwarg']}=...)"
                )

        if messages:
            self.fail("Logging violations:\n" + "\n".join(messages))

    def test_detector_flags_kwargs(self):
        """Sanity check on the detector itself."""
        source = 'logger.info("x", node_id="a")\nlogger.info("y", extra={"context": {}})\n'

        violations = self._find_logger_violations(source)

        self.assertEqual(len(violations), 1)
        self.assertEqual(violations[0]["invalid_kwarg"], "node_id")


class CapturingHandler(logging.Handler):
    def __init__(self, records_list):
        super().__init__()
        self.records = records_list

    def emit(self, record):
        self.records.append(record)


class TestLoggingContextCapture(unittest.TestCase):
    """Context travels through ContextAdapter into records and JSON."""

    def setUp(self):
        self.captured_records = []
        self.name = f"test_capture_{id(self)}"
        base = logging.getLogger(self.name)
        base.setLevel(logging.DEBUG)
        base.handlers = [CapturingHandler(self.captured_records)]
        base.propagate = False

    def tearDown(self):
        clear_global_context()

    def test_adapter_merges_default_and_call_context(self):
        logger = get_logger(self.name, component="liveness")

        logger.warning("Probe failed", extra={"context": {"node_id": "full-1"}})

        record = self.captured_records[0]
        self.assertEqual(record.context, {"component": "liveness", "node_id": "full-1"})

    def test_json_formatter_output(self):
        set_global_context(service="relaygate")
        logger = get_logger(self.name)

        logger.info("Cache hit", extra={"context": {"cache_key": "block:0x1"}})

        entry = json.loads(JSONFormatter().format(self.captured_records[0]))
        self.assertEqual(entry["level"], "INFO")
        self.assertEqual(entry["message"], "Cache hit")
        self.assertEqual(entry["context"]["service"], "relaygate")
        self.assertEqual(entry["context"]["cache_key"], "block:0x1")

    def test_error_code_lifted_to_top_level(self):
        logger = get_logger(self.name)

        logger.warning(
            "No node could serve block:0x1",
            extra={"context": {"code": "ALL_CANDIDATES_EXHAUSTED", "candidates": 3}},
        )

        entry = json.loads(JSONFormatter().format(self.captured_records[0]))
        self.assertEqual(entry["code"], "ALL_CANDIDATES_EXHAUSTED")
        self.assertEqual(entry["context"], {"candidates": 3})
        # The record itself is untouched
        self.assertIn("code", self.captured_records[0].context)

    def test_exc_info_with_context(self):
        logger = get_logger(self.name)
        try:
            raise ValueError("Test error")
        except ValueError:
            logger.error("Caught error", exc_info=True, extra={"context": {"operation": "test"}})

        record = self.captured_records[0]
        self.assertIsNotNone(record.exc_info)
        entry = json.loads(JSONFormatter().format(record))
        self.assertIn("ValueError", entry["context"]["exception"])
        self.assertEqual(entry["context"]["operation"], "test")

    def test_console_formatter_truncates_context(self):
        logger = get_logger(self.name)
        logger.info("Sweep", extra={"context": {"a": 1, "b": 2, "c": 3, "d": 4}})

        line = ConsoleFormatter().format(self.captured_records[0])

        self.assertIn("Sweep", line)
        self.assertIn("(+1 more)", line)


if __name__ == "__main__":
    unittest.main()
