import logging

from filevault.logging_config import SecretMaskingFilter, setup_logging


def _record(msg, args=()):
    return logging.LogRecord("filevault.test", logging.INFO, __file__, 1, msg, args, None)


def test_masks_basic_auth_header():
    record = _record("headers: Authorization: Basic dXNlcjpwYXNz")
    SecretMaskingFilter().filter(record)

    assert "dXNlcjpwYXNz" not in record.getMessage()
    assert "***MASKED***" in record.getMessage()


def test_masks_secret_in_args():
    record = _record("loaded %s", ("SECRET_KEY_HEX=" + "ab" * 32,))
    SecretMaskingFilter().filter(record)

    assert "ab" * 32 not in record.getMessage()


def test_leaves_plain_messages_alone():
    record = _record("[UPLOAD] Encrypting file '%s'", ("hello.txt",))
    SecretMaskingFilter().filter(record)

    assert record.getMessage() == "[UPLOAD] Encrypting file 'hello.txt'"


def test_setup_logging_is_idempotent():
    logger = setup_logging("filevault-test", "DEBUG")
    again = setup_logging("filevault-test", "WARNING")

    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
    assert not logger.propagate
