"""Tests for team identifier resolution and round name translation."""

from __future__ import annotations

from tournament.aliases import AliasIndex, matchup_key
from tournament.common import Team
from tournament.rounds import canonical_round, losers_round, rounds_match


def _index() -> AliasIndex:
    return AliasIndex.build(
        [
            Team(name="Alpha", tag="[a]", aliases=("alphateam", "AT")),
            Team(name="Beta", tag="bt", aliases=("beta-squad",)),
            Team(name="Gamma", tag="Alpha"),
        ]
    )


def test_resolve_by_name_tag_and_alias_is_case_insensitive() -> None:
    index = _index()
    assert index.resolve("alpha") == "Alpha"
    assert index.resolve("[A]") == "Alpha"
    assert index.resolve("a") == "Alpha"
    assert index.resolve("ALPHATEAM") == "Alpha"
    assert index.resolve("  bt ") == "Beta"
    assert index.resolve("Beta-Squad") == "Beta"


def test_canonical_name_wins_over_another_teams_tag() -> None:
    index = _index()
    assert index.resolve("alpha") == "Alpha"
    assert index.resolve("gamma") == "Gamma"


def test_unknown_identifier_is_returned_trimmed() -> None:
    index = _index()
    assert index.resolve("  Delta ") == "Delta"
    assert index.resolve(None) == ""
    assert not index.is_known("Delta")
    assert index.is_known("AT")


def test_same_pair_ignores_order_case_and_labels() -> None:
    index = _index()
    assert index.same_pair(("Alpha", "Beta"), ("bt", "[a]"))
    assert index.same_pair(("alpha", "BETA"), ("Alpha", "Beta"))
    assert not index.same_pair(("Alpha", "Beta"), ("Alpha", "Gamma"))


def test_matchup_key_is_sorted() -> None:
    assert matchup_key("Beta", "Alpha") == "AlphavsBeta"
    assert matchup_key("Alpha", "Beta") == matchup_key("Beta", "Alpha")


def test_round_spellings_translate_to_short_keys() -> None:
    assert canonical_round("quarterFinals") == "quarter"
    assert canonical_round("Quarter Final") == "quarter"
    assert canonical_round("QF") == "quarter"
    assert canonical_round("round16") == "r16"
    assert canonical_round("semiFinals") == "semi"
    assert canonical_round("thirdPlace") == "third"
    assert canonical_round("grandFinal") == "grand"
    assert canonical_round("group") == "group"
    assert canonical_round("round1") is None
    assert canonical_round("") is None


def test_rounds_match_across_spellings() -> None:
    assert rounds_match("quarter", "quarterFinals")
    assert not rounds_match("r16", "quarterFinals")
    assert rounds_match("round1", "Round1")
    assert not rounds_match("", "")


def test_losers_rounds_keep_their_own_keys() -> None:
    assert losers_round("round1") == "lr1"
    assert losers_round("round6") == "lr6"
    assert losers_round("final") == "lfinal"
    assert losers_round("semiFinals") == "lsemi"
    assert canonical_round("L Final") == "lfinal"
    assert canonical_round("l semi-finals") == "lsemi"
    assert not rounds_match("lfinal", "final")
    assert rounds_match("lr2", "LR2")
