# Copyright 2025 Ant Group Co., Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for quantir logging functionality."""

import io
import logging

import pytest

import quantir


@pytest.fixture(autouse=True)
def _restore(restore_quantir_logger):
    yield


def test_logging_disabled_by_default():
    """Library mode: the quantir logger only has a NullHandler."""
    logger = logging.getLogger("quantir")
    assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)


def test_setup_logging_basic():
    log_stream = io.StringIO()
    quantir.setup_logging(level="INFO", stream=log_stream, force=True)

    logging.getLogger("quantir.test").info("Test message")

    log_output = log_stream.getvalue()
    assert "Test message" in log_output
    assert "INFO" in log_output
    assert "quantir.test" in log_output


def test_setup_logging_levels():
    log_stream = io.StringIO()
    quantir.setup_logging(level="WARNING", stream=log_stream, force=True)

    logger = logging.getLogger("quantir.test")
    logger.debug("Debug message")
    logger.info("Info message")
    logger.warning("Warning message")
    logger.error("Error message")

    log_output = log_stream.getvalue()
    assert "Debug message" not in log_output
    assert "Info message" not in log_output
    assert "Warning message" in log_output
    assert "Error message" in log_output


def test_disable_logging():
    log_stream = io.StringIO()
    quantir.setup_logging(level="DEBUG", stream=log_stream, force=True)
    quantir.disable_logging()

    logging.getLogger("quantir.test").error("This should not appear")

    assert "This should not appear" not in log_stream.getvalue()


def test_parser_debug_trace():
    log_stream = io.StringIO()
    quantir.setup_logging(level="DEBUG", stream=log_stream, force=True)

    quantir.parse_operation("quantum.h %r[0, %n] : register<4>")

    assert "parsed quantum.h with 2 operands" in log_stream.getvalue()


def test_parser_warning_is_logged():
    log_stream = io.StringIO()
    quantir.setup_logging(level="WARNING", stream=log_stream, force=True)
    config = quantir.ParserConfig(allow_missing_rotation_parameter=True)

    quantir.parse_operation("quantum.rx() %q : qubit", config=config)

    log_output = log_stream.getvalue()
    assert "warning: 'quantum.rx' has no rotation angle" in log_output
    assert "quantir.ir.diagnostics" in log_output


def test_logging_with_custom_format():
    log_stream = io.StringIO()
    quantir.setup_logging(
        level="INFO", format="CUSTOM: %(message)s", stream=log_stream, force=True
    )

    logging.getLogger("quantir.test").info("Test message")

    assert log_stream.getvalue() == "CUSTOM: Test message\n"


def test_logging_to_file(tmp_path):
    log_file = tmp_path / "quantir.log"
    quantir.setup_logging(level="INFO", filename=str(log_file), stream=False, force=True)

    logging.getLogger("quantir.test").info("File message")
    for handler in logging.getLogger("quantir").handlers:
        handler.flush()
        handler.close()

    assert "File message" in log_file.read_text()


def test_propagate_to_root_logger(caplog):
    quantir.setup_logging(level="INFO", propagate=True)

    logger = logging.getLogger("quantir")
    assert not any(isinstance(h, logging.NullHandler) for h in logger.handlers)

    logging.getLogger("quantir.test").info("Propagated message")

    assert "Propagated message" in caplog.text


def test_force_replaces_handlers():
    first = io.StringIO()
    second = io.StringIO()
    quantir.setup_logging(level="INFO", stream=first, force=True)
    quantir.setup_logging(level="INFO", stream=second, force=True)

    logging.getLogger("quantir.test").info("Only once")

    assert first.getvalue() == ""
    assert "Only once" in second.getvalue()
