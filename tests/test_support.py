"""
Tests for validation, configuration, audit logging and the CLI.
"""

import io
import json
import logging
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from cryptocond import (
    DataCompletenessError,
    InvalidInputError,
    build_condition,
)
from cryptocond import cli
from cryptocond.config import BCRYPT_ROUNDS, default_rounds, validate_config
from cryptocond.errors import ConditionError
from cryptocond.logging_config import (
    ConditionAuditLogger,
    StructuredFormatter,
    configure_logging,
    get_request_id,
    set_request_id,
)
from cryptocond.validation import require_text, validate_hex, validate_rounds, validate_salt


KNOWN_PREIMAGE = "00112233445566778899AABBCCDDEEFF00112233445566778899AABBCCDDEEFF"


class TestValidation(unittest.TestCase):

    def test_hex(self):
        self.assertEqual(validate_hex("0aFF", "x"), b"\x0a\xff")
        self.assertEqual(validate_hex("  0a \n", "x"), b"\x0a")

    def test_hex_missing(self):
        for value in (None, "", "   "):
            with self.subTest(value=value):
                with self.assertRaises(DataCompletenessError):
                    validate_hex(value, "x")

    def test_hex_malformed(self):
        for value in ("abc", "zz", "0x00", 42):
            with self.subTest(value=value):
                with self.assertRaises(InvalidInputError):
                    validate_hex(value, "x")

    def test_hex_min_bytes(self):
        with self.assertRaises(InvalidInputError) as ctx:
            validate_hex("00" * 31, "existing_preimage", min_bytes=32)
        self.assertEqual(ctx.exception.field, "existing_preimage")

    def test_rounds(self):
        self.assertEqual(validate_rounds(None), 10)
        self.assertEqual(validate_rounds(4), 10)
        self.assertEqual(validate_rounds(12), 12)
        self.assertEqual(validate_rounds(31), 31)

    def test_rounds_rejected(self):
        for value in (32, "x", True):
            with self.subTest(value=value):
                with self.assertRaises(InvalidInputError):
                    validate_rounds(value)

    def test_salt(self):
        salt = "$2b$12$" + "a" * 22
        self.assertEqual(validate_salt(salt), (salt, 12))
        self.assertEqual(validate_salt(" " + salt + " "), (salt, 12))

    def test_salt_rejected(self):
        for value in ("$2b$03$" + "a" * 22, "$2b$10$short", "$1$10$" + "a" * 22, None):
            with self.subTest(value=value):
                with self.assertRaises(InvalidInputError):
                    validate_salt(value)

    def test_require_text(self):
        self.assertEqual(require_text(" pw ", "password"), " pw ")
        with self.assertRaises(DataCompletenessError):
            require_text("\t", "password")


class TestErrors(unittest.TestCase):

    def test_as_dict(self):
        error = InvalidInputError("must be valid hexadecimal", field="preimage", length=3)

        self.assertEqual(error.as_dict(), {
            "code": "INVALID_INPUT",
            "message": "must be valid hexadecimal",
            "field": "preimage",
            "details": {"length": 3},
        })
        self.assertEqual(str(error), "preimage: must be valid hexadecimal")

    def test_hierarchy(self):
        self.assertTrue(issubclass(InvalidInputError, ConditionError))
        self.assertTrue(issubclass(InvalidInputError, ValueError))


class TestConfig(unittest.TestCase):

    def test_default_rounds(self):
        self.assertEqual(default_rounds(), BCRYPT_ROUNDS)

    def test_validate_config_keys(self):
        self.assertEqual(set(validate_config()), {"env", "bcrypt_rounds", "log_level"})


class TestLogging(unittest.TestCase):

    def test_structured_formatter(self):
        record = logging.LogRecord("cryptocond.audit", logging.INFO, __file__, 1, "hello", (), None)
        record.extra_fields = {"event_type": "CONDITION_BUILT", "fee_drops": 350}

        data = json.loads(StructuredFormatter().format(record))

        self.assertEqual(data["level"], "INFO")
        self.assertEqual(data["message"], "hello")
        self.assertEqual(data["event_type"], "CONDITION_BUILT")
        self.assertEqual(data["fee_drops"], 350)

    def test_request_id(self):
        request_id = set_request_id("req-1")

        self.assertEqual(request_id, "req-1")
        self.assertEqual(get_request_id(), "req-1")
        self.assertTrue(set_request_id())

    def test_audit_events(self):
        audit = ConditionAuditLogger("cryptocond.test_audit")

        with self.assertLogs("cryptocond.test_audit", level="INFO") as logs:
            audit.secret_derived("random")
            audit.self_check_failed("rederivation")

        self.assertEqual(logs.records[0].extra_fields["event_type"], "SECRET_DERIVED")
        self.assertEqual(logs.records[1].levelno, logging.ERROR)

    def test_secrets_never_logged(self):
        with self.assertLogs("cryptocond.audit", level="DEBUG") as logs:
            result = build_condition(password="correct horse", pepper="rEscrowOwner")

        formatter = StructuredFormatter()
        output = "\n".join(formatter.format(r) for r in logs.records)
        self.assertIn("CONDITION_BUILT", output)
        self.assertNotIn("correct horse", output)
        self.assertNotIn(result.preimage_hex, output)
        self.assertNotIn(result.salt_metadata.value, output)

    def test_unknown_level(self):
        for level in ("bogus", "", "LEVEL 5"):
            with self.subTest(level=level):
                with self.assertRaises(ValueError):
                    configure_logging(level)


@mock.patch.object(cli, "configure_logging")
class TestCli(unittest.TestCase):

    def run_cli(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = cli.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_fee(self, _configure):
        code, out, _ = self.run_cli("fee", "-l", "17")

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["fee_drops"], 350)

    def test_generate_random(self, _configure):
        code, out, err = self.run_cli("generate")

        self.assertEqual(code, 0)
        data = json.loads(out.split("\n\n")[0])
        self.assertEqual(len(data["preimage_hex"]), 64)
        self.assertIn("Write down the preimage", err)

    def test_generate_password_hides_secrets(self, _configure):
        code, out, _ = self.run_cli("generate", "-p", "correct horse", "-P", "rEscrowOwner")

        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertNotIn("preimage_hex", data)
        self.assertNotIn("value", data["salt_metadata"])

    def test_verify(self, _configure):
        condition = build_condition(existing_preimage=KNOWN_PREIMAGE).condition_hex

        self.assertEqual(self.run_cli("verify", "-c", condition, "-k", KNOWN_PREIMAGE)[0], 0)
        self.assertEqual(self.run_cli("verify", "-c", condition, "-k", "00" * 32)[0], 1)

    def test_verify_needs_secret(self, _configure):
        with mock.patch.dict("os.environ", {}, clear=True):
            code, _, err = self.run_cli("verify", "-c", "A0")

        self.assertEqual(code, 2)
        self.assertIn("--preimage", err)

    def test_fulfill(self, _configure):
        code, out, _ = self.run_cli("fulfill", "-k", KNOWN_PREIMAGE)

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["fulfillment_hex"], "A0228020" + KNOWN_PREIMAGE)

    def test_condition_error_exit_code(self, _configure):
        code, _, err = self.run_cli("fulfill", "-k", "zz")

        self.assertEqual(code, 2)
        self.assertIn("preimage", err)

    def test_unknown_log_level(self, _configure):
        with self.assertRaises(SystemExit) as ctx:
            self.run_cli("--log-level", "bogus", "fee", "-l", "17")

        self.assertEqual(ctx.exception.code, 2)
        _configure.assert_not_called()

    def test_log_level_any_case(self, _configure):
        code, _, _ = self.run_cli("--log-level", "debug", "fee", "-l", "17")

        self.assertEqual(code, 0)
        self.assertEqual(_configure.call_args.kwargs["level"], "DEBUG")

    def test_unknown_log_level_from_env(self, _configure):
        _configure.side_effect = ValueError("Unknown log level: VERBOSE")
        with mock.patch.object(cli, "LOG_LEVEL", "verbose"):
            code, out, err = self.run_cli("fee", "-l", "17")

        self.assertEqual(code, 2)
        self.assertEqual(out, "")
        self.assertIn("Unknown log level", err)

    def test_no_command(self, _configure):
        code, out, _ = self.run_cli()

        self.assertEqual(code, 2)
        self.assertIn("usage", out)


if __name__ == "__main__":
    unittest.main(verbosity=2)
