"""Tests for team tables and alias disambiguation."""

from crossarb.teams import (
    ABBREV_INDEX,
    TEAMS_BY_ID,
    city_form,
    detect_sport,
    disambiguate,
    get_team,
)


def test_league_sizes():
    """Every pro league is fully registered."""
    sports = [team.sport for team in TEAMS_BY_ID.values()]
    assert sports.count("nfl") == 32
    assert sports.count("nba") == 30
    assert sports.count("nhl") == 32


def test_college_programs_expand_to_both_sports():
    """A college program exists once per sport it plays."""
    assert "cfb:duke" in TEAMS_BY_ID
    assert "cbb:duke" in TEAMS_BY_ID
    # Basketball-only programs
    assert "cbb:gonzaga" in TEAMS_BY_ID
    assert "cfb:gonzaga" not in TEAMS_BY_ID


def test_canonical_ids_are_sport_qualified():
    """Shared nicknames stay distinct franchises."""
    assert get_team("nfl:panthers").city == "carolina"
    assert get_team("nhl:panthers").city == "florida"
    assert get_team("nba:kings").city == "sacramento"
    assert get_team("nhl:kings").city == "los angeles"


def test_abbreviation_index_is_pro_only():
    """College abbreviations are too ambiguous to index."""
    assert [team.id for team in ABBREV_INDEX["GB"]] == ["nfl:packers"]
    assert all(team.sport in ("nfl", "nba", "nhl") for teams in ABBREV_INDEX.values() for team in teams)


def test_disambiguate_city_defaults():
    """Bare cities resolve to their most common franchise."""
    assert disambiguate("Minnesota") == "nba:timberwolves"
    assert disambiguate("Los Angeles") == "nfl:rams"
    assert disambiguate("New York") == "nfl:giants"


def test_disambiguate_prefers_sport_hint():
    """An explicit sport beats the default."""
    assert disambiguate("New York", sport_hint="nba") == "nba:knicks"
    assert disambiguate("Minnesota", sport_hint="nhl") == "nhl:wild"


def test_disambiguate_uses_known_teams():
    """The sport of teams already seen settles an ambiguous alias."""
    assert disambiguate("Kings", known_teams=["nba:lakers"]) == "nba:kings"
    assert disambiguate("Kings", known_teams=["nhl:sharks"]) == "nhl:kings"


def test_disambiguate_unknown_alias():
    """Unknown aliases resolve to nothing."""
    assert disambiguate("Springfield Isotopes") is None


def test_detect_sport_checks_college_first():
    """College keywords win over the generic sport words."""
    assert detect_sport("College Football: Alabama vs Auburn") == "cfb"
    assert detect_sport("NCAAB: Duke vs UNC") == "cbb"
    assert detect_sport("Pro Football: Ravens vs Packers") == "nfl"
    assert detect_sport("Will it rain tomorrow?") is None


def test_city_form():
    """Nicknames map to the city of the first registered franchise."""
    assert city_form("Packers") == "green bay"
    assert city_form("bears") == "chicago"
    assert city_form("not-a-team") == "not-a-team"
