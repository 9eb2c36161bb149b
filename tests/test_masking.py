"""Tests for secret masking."""

from jobagent.masking import SECRET_MASK, mask_secret_envs, mask_secrets


class TestMaskSecrets:
    def test_masks_literal_secret(self):
        assert mask_secrets("token123 visiting", ["token123"]) == "******** visiting"

    def test_masks_every_occurrence(self):
        assert mask_secrets("abc-abc-abc", ["abc"]) == "********-********-********"

    def test_no_secrets_is_identity(self):
        assert mask_secrets("nothing to hide", []) == "nothing to hide"

    def test_empty_secret_ignored(self):
        assert mask_secrets("hello", [""]) == "hello"

    def test_mask_token_is_eight_stars(self):
        assert SECRET_MASK == "*" * 8


class TestMaskSecretEnvs:
    def test_masks_value_keeps_key(self):
        assert mask_secret_envs("export KEY=SECRETVAL\n", ["KEY=SECRETVAL"]) == "export KEY=********\n"

    def test_value_masked_anywhere_in_line(self):
        assert mask_secret_envs("using SECRETVAL now", ["KEY=SECRETVAL"]) == "using ******** now"

    def test_value_with_equals_is_skipped(self):
        text = "A B C B=C"
        assert mask_secret_envs(text, ["A=B=C"]) == text

    def test_empty_value_is_skipped(self):
        assert mask_secret_envs("KEY= here", ["KEY="]) == "KEY= here"

    def test_empty_key_is_skipped(self):
        assert mask_secret_envs("value here", ["=value"]) == "value here"

    def test_entry_without_separator_is_skipped(self):
        assert mask_secret_envs("JUSTKEY", ["JUSTKEY"]) == "JUSTKEY"

    def test_multiple_entries(self):
        out = mask_secret_envs("u=alice p=hunter2", ["USER=alice", "PASS=hunter2"])
        assert out == "u=******** p=********"

    def test_empty_message(self):
        assert mask_secret_envs("", ["KEY=VAL"]) == ""
