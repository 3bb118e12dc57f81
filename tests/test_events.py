"""Tests for team, date and event-signature extraction."""

from datetime import date

from conftest import make_market

from crossarb.events import (
    extract_date,
    extract_event_signature,
    extract_team_from_outcome,
    extract_teams,
    resolve_outcome_pair,
    signatures_match,
)
from crossarb.models import EventSignature, Platform, TeamResolution


def test_city_plus_nickname_counts_once():
    """'Minnesota Timberwolves' is one team, same as 'Timberwolves'."""
    assert extract_teams("Minnesota Timberwolves") == extract_teams("Timberwolves")
    assert extract_teams("Timberwolves") == ["nba:timberwolves"]


def test_city_and_nickname_forms_agree():
    """Cities, nicknames and abbreviations all reach the same canonical ids."""
    assert extract_teams("Baltimore at Green Bay Winner?") == ["nfl:ravens", "nfl:packers"]
    assert extract_teams("NFL: Ravens vs. Packers") == ["nfl:ravens", "nfl:packers"]
    assert extract_teams("BAL @ GB") == ["nfl:ravens", "nfl:packers"]


def test_weather_markets_are_not_games():
    """'min'/'minimum' text without sports vocabulary yields no teams."""
    assert extract_teams("Minimum temperature in Chicago on Friday?") == []
    assert extract_teams("Arctic sea ice minimum below 4M km2 in Minnesota?") == []


def test_at_marks_a_game_despite_min_token():
    """'MIN at DEN' is a matchup, not a minimum."""
    teams = extract_teams("MIN at DEN: max total points")
    assert len(teams) == 2
    assert teams[0].split(":")[0] == teams[1].split(":")[0]


def test_shared_sport_settles_ambiguous_nicknames():
    """Panthers and Bruins both play hockey, so both resolve to the NHL."""
    assert extract_teams("Panthers vs Bruins") == ["nhl:panthers", "nhl:bruins"]


def test_unambiguous_team_settles_the_other():
    """Lakers pin the game to the NBA, so Kings means Sacramento."""
    assert extract_teams("Lakers vs Kings") == ["nba:lakers", "nba:kings"]


def test_la_prefix_is_not_an_abbreviation():
    """'LA Rams' names the Rams, not the LA Kings."""
    assert extract_teams("LA Rams vs SF 49ers") == ["nfl:rams", "nfl:49ers"]


def test_sport_filter():
    """An explicit sport restricts the candidates."""
    assert extract_teams("Florida vs Boston", sport="nhl") == ["nhl:panthers", "nhl:bruins"]
    assert extract_teams("Ravens vs Packers", sport="nba") == []


def test_extract_teams_empty():
    assert extract_teams("") == []
    assert extract_teams("   ") == []


def test_extract_date_forms():
    """ISO, ticker, slash and month-name dates all come back as ISO strings."""
    assert extract_date("nfl-bal-gb-2025-12-18") == "2025-12-18"
    assert extract_date("KXNFLGAME-25DEC18BALGB") == "2025-12-18"
    assert extract_date("Game on 12/18/2025") == "2025-12-18"
    assert extract_date("Game on 12/18/25") == "2025-12-18"
    assert extract_date("Ravens vs Packers, Dec 18, 2025") == "2025-12-18"


def test_extract_date_without_year_uses_current_year():
    assert extract_date("Ravens vs Packers on December 18", today=date(2026, 1, 2)) == "2026-12-18"


def test_extract_date_rejects_invalid():
    """Impossible calendar dates and dateless text return None."""
    assert extract_date("2025-02-30") is None
    assert extract_date("Ravens vs Packers") is None


def test_event_signature_from_title_and_id(kalshi_game):
    """Teams are sorted; the date comes from the ticker in the id."""
    signature = extract_event_signature(kalshi_game)
    assert signature.teams == ("nfl:packers", "nfl:ravens")
    assert signature.date == date(2025, 12, 18)


def test_event_signature_from_link(polymarket_game):
    signature = extract_event_signature(polymarket_game)
    assert signature.teams == ("nfl:packers", "nfl:ravens")
    assert signature.date == date(2025, 12, 18)


def test_event_signature_falls_back_to_date_field():
    market = make_market(Platform.POLYMARKET, "polymarket:1", "Celtics vs Raptors",
                         [("Celtics", 0.6), ("Raptors", 0.4)], date="2025-12-20T00:00:00Z")
    assert extract_event_signature(market).date == date(2025, 12, 20)


def test_event_signature_requires_two_teams():
    """One team or three teams give no signature."""
    single = make_market(Platform.KALSHI, "kalshi:1", "Will the Ravens win the Super Bowl?",
                         [("Yes", 0.1), ("No", 0.9)])
    triple = make_market(Platform.KALSHI, "kalshi:2", "Ravens, Packers or Bears to make playoffs?",
                         [("Yes", 0.1), ("No", 0.9)])
    assert extract_event_signature(single) is None
    assert extract_event_signature(triple) is None


def test_reversed_pair_one_day_apart_matches():
    """[A, B] on D and [B, A] on D+1 are the same event."""
    a = make_market(Platform.KALSHI, "kalshi:1", "Ravens vs Packers 2025-12-18",
                    [("Yes", 0.5), ("No", 0.5)])
    b = make_market(Platform.POLYMARKET, "polymarket:1", "Packers vs Ravens 2025-12-19",
                    [("Packers", 0.5), ("Ravens", 0.5)])
    assert signatures_match(extract_event_signature(a), extract_event_signature(b))


def test_signatures_outside_tolerance_do_not_match():
    a = EventSignature(("nfl:packers", "nfl:ravens"), date(2025, 12, 18))
    b = EventSignature(("nfl:packers", "nfl:ravens"), date(2025, 12, 21))
    assert not signatures_match(a, b)
    # Dated vs undated
    assert not signatures_match(a, EventSignature(("nfl:packers", "nfl:ravens")))


def test_outcome_naming_a_team():
    assert extract_team_from_outcome("Ravens", "Who wins?") == "nfl:ravens"


def test_outcome_hint_wins():
    """An explicit hint beats the title."""
    assert extract_team_from_outcome(
        "Yes", "Baltimore at Green Bay Winner?", hint="Green Bay"
    ) == "nfl:packers"


def test_yes_no_with_one_title_team():
    """'No' backs the named team, 'Yes' backs the other team of the event."""
    event_teams = ("nfl:packers", "nfl:ravens")
    title = "Will the Ravens win?"
    assert extract_team_from_outcome("No", title, event_teams) == "nfl:ravens"
    assert extract_team_from_outcome("Yes", title, event_teams) == "nfl:packers"


def test_yes_no_with_two_title_teams():
    """The first title team backs 'Yes', the second 'No'."""
    title = "Will the Ravens beat the Packers?"
    assert extract_team_from_outcome("Yes", title) == "nfl:ravens"
    assert extract_team_from_outcome("No", title) == "nfl:packers"


def test_unresolvable_outcome():
    assert extract_team_from_outcome("Draw", "Ravens vs Packers") is None


def test_resolve_pair_confirmed(kalshi_game, polymarket_game):
    """Kalshi 'No' backs Green Bay, Polymarket 'Ravens' backs Baltimore."""
    signature = extract_event_signature(kalshi_game)
    resolution = resolve_outcome_pair(kalshi_game, 1, polymarket_game, 0, signature)
    assert resolution.status == TeamResolution.CONFIRMED
    assert resolution.team_a == "nfl:packers"
    assert resolution.team_b == "nfl:ravens"


def test_resolve_pair_same_team_rejected(kalshi_game, polymarket_game):
    signature = extract_event_signature(kalshi_game)
    resolution = resolve_outcome_pair(kalshi_game, 0, polymarket_game, 0, signature)
    assert resolution.status == TeamResolution.REJECTED


def test_resolve_pair_unresolved_within_group(kalshi_game):
    """Generic outcome names inside a grouped event are accepted softly."""
    other = make_market(Platform.POLYMARKET, "polymarket:9", "Ravens vs Packers 2025-12-18",
                        [("Home", 0.6), ("Away", 0.4)])
    signature = extract_event_signature(kalshi_game)
    resolution = resolve_outcome_pair(kalshi_game, 0, other, 1, signature)
    assert resolution.status == TeamResolution.UNRESOLVED_GROUPED
