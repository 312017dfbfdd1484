"""Tests for the command grammar."""

import pytest

from grouper.grammar import (
    CommandGrammar,
    ParsedCommand,
    is_affirmative,
    is_decline,
    is_greeting,
    parse_mentions,
)


@pytest.fixture
def grammar():
    return CommandGrammar(["grouper", "grouper.base.eth"])


class TestParseCommand:
    """Tests for CommandGrammar.parse_command()."""

    def test_mention_prefixed_create(self, grammar):
        """Test the common group form."""
        assert grammar.parse_command("@grouper create Project X") == ParsedCommand(
            verb="create", private=False, name="Project X"
        )

    def test_private_qualifier(self, grammar):
        """Test that private is detected and not part of the name."""
        cmd = grammar.parse_command("@grouper make private Launch Plan")
        assert cmd.private is True
        assert cmd.name == "Launch Plan"

    @pytest.mark.parametrize("verb", ["create", "make", "new", "sidebar"])
    def test_all_verbs(self, grammar, verb):
        """Test every verb is accepted, in any case."""
        cmd = grammar.parse_command(f"{verb.upper()} Design Review")
        assert cmd.verb == verb
        assert cmd.name == "Design Review"

    def test_bare_private(self, grammar):
        """Test DM form without mention."""
        cmd = grammar.parse_command("sidebar private Secrets")
        assert cmd == ParsedCommand(verb="sidebar", private=True, name="Secrets")

    def test_long_handle_mention(self, grammar):
        """Test the .base.eth handle is not cut at the short handle."""
        cmd = grammar.parse_command("@grouper.base.eth new Offsite")
        assert cmd.name == "Offsite"

    def test_mention_with_space_after_at(self, grammar):
        """Test whitespace between @ and handle."""
        assert grammar.parse_command("@ grouper create Ops").name == "Ops"

    def test_name_keeps_inner_text(self, grammar):
        """Test names are trimmed but otherwise verbatim."""
        cmd = grammar.parse_command("create   Q3 planning: budget & hiring  ")
        assert cmd.name == "Q3 planning: budget & hiring"

    @pytest.mark.parametrize(
        "text",
        ["", None, "hello there", "create", "create   ", "please create", 42],
    )
    def test_no_command(self, grammar, text):
        """Test non-commands and empty names give None."""
        assert grammar.parse_command(text) is None

    def test_unknown_handle_ignored_as_mention(self, grammar):
        """Test a mention of another handle does not count as the prefix."""
        assert grammar.parse_command("@someone create Thing") is None

    def test_default_handles_from_config(self):
        """Test handles default to the configured list."""
        assert "grouper" in CommandGrammar().agent_handles


class TestParseMentions:
    """Tests for parse_mentions()."""

    def test_extracts_tokens_in_order(self):
        """Test tokens are returned without @ and with duplicates."""
        text = "@alice.eth and @0xABCDEF1234 and @bob and @bob"
        assert parse_mentions(text) == ["alice.eth", "0xABCDEF1234", "bob", "bob"]

    def test_hyphens_and_dots(self):
        """Test allowed token characters."""
        assert parse_mentions("@my-name.base.eth!") == ["my-name.base.eth"]

    def test_no_mentions(self):
        """Test empty results."""
        assert parse_mentions("no one here") == []
        assert parse_mentions(None) == []


class TestShortReplies:
    """Tests for greeting / affirmative / decline classifiers."""

    @pytest.mark.parametrize("text", ["hi", "Hey there", "hello!", "gm", "Good morning"])
    def test_greetings(self, text):
        assert is_greeting(text)

    @pytest.mark.parametrize("text", ["yes", "Yeah!", "sure thing", "ok", "let's do it"])
    def test_affirmatives(self, text):
        assert is_affirmative(text)

    @pytest.mark.parametrize("text", ["no", "Nope", "no thanks", "not now", "cancel"])
    def test_declines(self, text):
        assert is_decline(text)

    def test_words_inside_other_words_do_not_match(self):
        """Test word boundaries."""
        assert not is_greeting("history")
        assert not is_affirmative("yesterday")
        assert not is_decline("nothing")
